import io

from fastagi.agi.preamble import read_preamble


def test_basic_block():
    r = io.BytesIO(b"agi_request: foo.agi\nagi_channel: SIP/1\n\n")
    assert read_preamble(r) == {"agi_request": "foo.agi", "agi_channel": "SIP/1"}


def test_stops_at_terminator_and_leaves_the_rest():
    r = io.BytesIO(b"agi_request: foo.agi\n\n200 result=0\n")
    assert read_preamble(r) == {"agi_request": "foo.agi"}
    assert r.readline() == b"200 result=0\n"


def test_eof_without_terminator_keeps_parsed_lines():
    r = io.BytesIO(b"agi_request: foo.agi\nagi_channel: SIP/1\n")
    assert read_preamble(r) == {"agi_request": "foo.agi", "agi_channel": "SIP/1"}
    assert read_preamble(io.BytesIO(b"")) == {}


def test_split_at_first_colon_only():
    r = io.BytesIO(b"agi_network_script: hello?x=a:b\nagi_request: agi://127.0.0.1:4573/hello\n\n")
    v = read_preamble(r)
    assert v["agi_network_script"] == "hello?x=a:b"
    assert v["agi_request"] == "agi://127.0.0.1:4573/hello"


def test_lines_without_colon_are_ignored_and_whitespace_trimmed():
    r = io.BytesIO(b"garbage line\n  agi_type :  SIP  \r\n\r\n")
    assert read_preamble(r) == {"agi_type": "SIP"}


def test_later_duplicate_key_wins():
    r = io.BytesIO(b"agi_arg_1: a\nagi_arg_1: b\n\n")
    assert read_preamble(r) == {"agi_arg_1": "b"}
