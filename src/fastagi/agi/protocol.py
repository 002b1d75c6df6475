from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

# ==== Status codes (sent by Asterisk) ====
STATUS_OK = 200
STATUS_INVALID = 510
STATUS_DEAD_CHANNEL = 511
STATUS_END_USAGE = 520

# ==== Error taxonomy (frozen) ====
E_HANGUP = "E_HANGUP"
E_TRANSPORT = "E_TRANSPORT"
E_PARSE = "E_PARSE"
E_STATUS = "E_STATUS"

HANGUP_LINE = "HANGUP"

_RESPONSE_RE = re.compile(r"^([0-9]{3}) result=(-?[A-Za-z0-9]*)(?: (.*))?$")


class AgiError(Exception):
    """Base class for failed AGI exchanges; carries the Response when there is one."""

    code = "E_AGI"

    def __init__(self, message: str, response: Optional["Response"] = None) -> None:
        super().__init__(message)
        self.response = response


class HangupError(AgiError):
    code = E_HANGUP


class TransportError(AgiError):
    code = E_TRANSPORT


class ProtocolParseError(AgiError):
    code = E_PARSE

    @property
    def raw(self) -> str:
        return self.response.raw if self.response is not None else ""


class StatusError(AgiError):
    code = E_STATUS


_ERRORS = {cls.code: cls for cls in (HangupError, TransportError, ProtocolParseError, StatusError)}


@dataclass(frozen=True)
class Response:
    status: int
    result: Optional[int]
    result_text: str
    value: str
    error_code: Optional[str] = None
    message: str = "OK"
    raw: str = ""

    @property
    def ok(self) -> bool:
        return self.error_code is None

    def check(self) -> "Response":
        """Raise the AgiError subclass matching error_code, else return self."""
        if self.error_code is None:
            return self
        cls = _ERRORS.get(self.error_code, AgiError)
        raise cls(self.message, response=self)

    def val(self) -> str:
        return self.check().value

    def res(self) -> str:
        return self.check().result_text

    def summary(self) -> str:
        """Compact rendering used by the trace sinks."""
        if self.error_code is not None and self.error_code != E_STATUS:
            return "{Err:" + self.message + "}"
        parts = [f"Sta:{self.status}", f"Res:{self.result if self.result is not None else '-'}"]
        if self.result_text:
            parts.append(f"Str:{self.result_text}")
        if self.value:
            parts.append(f"Val:{self.value}")
        if self.error_code is not None:
            parts.append("Err:" + self.message)
        return "{" + " ".join(parts) + "}"


def failure(code: str, message: str, *, raw: str = "") -> Response:
    return Response(0, None, "", "", error_code=code, message=message, raw=raw)


def _parse_int(token: str) -> Optional[int]:
    try:
        return int(token)
    except ValueError:
        return None


def parse_response(line: str) -> Response:
    """Parse one response line into a Response.

    Grammar: DDD result=RESULT[ (VALUE)]
    - `HANGUP` alone is the hangup sentinel.
    - RESULT is -?[alnum]*; it is also parsed as int when possible.
    - VALUE is the text between the outer parentheses of the trailing segment.
    - any status other than 200 yields E_STATUS with the fields kept.
    """
    s = line.rstrip("\r\n")
    if s == HANGUP_LINE:
        return failure(E_HANGUP, "hangup", raw=s)

    m = _RESPONSE_RE.match(s)
    if m is None:
        return failure(E_PARSE, f"failed to parse result: {s}", raw=s)

    status = int(m.group(1))
    result_text = m.group(2)
    trailer = (m.group(3) or "").strip()
    value = trailer[1:-1] if len(trailer) >= 2 and trailer.startswith("(") and trailer.endswith(")") else ""

    if status != STATUS_OK:
        return Response(
            status,
            _parse_int(result_text),
            result_text,
            value,
            error_code=E_STATUS,
            message=f"non-200 status code: {status}",
            raw=s,
        )
    return Response(status, _parse_int(result_text), result_text, value, raw=s)
