import pytest

from fastagi.agi.protocol import (
    E_HANGUP,
    E_PARSE,
    E_STATUS,
    HangupError,
    ProtocolParseError,
    StatusError,
    parse_response,
)


def test_ok_with_value():
    r = parse_response("200 result=1 (hello world)")
    assert r.ok
    assert r.status == 200
    assert r.result == 1
    assert r.result_text == "1"
    assert r.value == "hello world"
    assert r.check() is r


def test_ok_without_value():
    r = parse_response("200 result=0\n")
    assert r.ok
    assert r.result == 0
    assert r.value == ""


def test_negative_result():
    r = parse_response("200 result=-1")
    assert r.ok
    assert r.result == -1
    assert r.result_text == "-1"


def test_non_numeric_result_is_not_a_parse_failure():
    r = parse_response("200 result=abc")
    assert r.ok
    assert r.result is None
    assert r.result_text == "abc"

    empty = parse_response("200 result=")
    assert empty.ok
    assert empty.result is None
    assert empty.result_text == ""


def test_trailer_without_parentheses_has_no_value():
    assert parse_response("200 result=1 endpos=1234").value == ""
    # stream file style: value is only taken when the whole trailer is parenthesized
    assert parse_response("200 result=0 (timeout) endpos=1234").value == ""


def test_value_keeps_inner_parentheses():
    assert parse_response("200 result=1 (a (b) c)").value == "a (b) c"


@pytest.mark.parametrize("status", [510, 511, 520])
def test_non_200_status_keeps_fields(status):
    r = parse_response(f"{status} result=-1 (detail)")
    assert not r.ok
    assert r.error_code == E_STATUS
    assert r.status == status
    assert r.result == -1
    assert r.value == "detail"
    with pytest.raises(StatusError) as ei:
        r.check()
    assert ei.value.response is r


def test_hangup_sentinel():
    r = parse_response("HANGUP")
    assert r.error_code == E_HANGUP
    assert r.status == 0
    with pytest.raises(HangupError):
        r.val()


def test_hangup_must_be_exact():
    assert parse_response("HANGUP now").error_code == E_PARSE
    assert parse_response("hangup").error_code == E_PARSE


@pytest.mark.parametrize(
    "line", ["not a response", "20 result=1", "200 result=1(x)", "200 res=1", "", "\u0662\u0660\u0660 result=1"]
)
def test_unparseable_line(line):
    r = parse_response(line)
    assert r.error_code == E_PARSE
    assert r.status == 0
    assert r.result is None
    assert r.result_text == ""
    assert r.value == ""
    assert r.raw == line
    with pytest.raises(ProtocolParseError) as ei:
        r.res()
    assert ei.value.raw == line


def test_summary_rendering():
    assert parse_response("200 result=1 (x)").summary() == "{Sta:200 Res:1 Str:1 Val:x}"
    assert parse_response("HANGUP").summary() == "{Err:hangup}"
    assert parse_response("510 result=").summary() == "{Sta:510 Res:- Err:non-200 status code: 510}"
