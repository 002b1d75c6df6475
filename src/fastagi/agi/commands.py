from __future__ import annotations

import datetime
import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional

from fastagi.agi.protocol import Response
from fastagi.common.time import to_epoch, to_msec, to_sec

# AGI needs empty double quotes to hold the place of an empty argument
EMPTY_ARG = '""'

DEFAULT_DATETIME_FORMAT = "ABdY 'digits/at' IMp"


class ChannelState(IntEnum):
    """Asterisk channel states, as returned by CHANNEL STATUS."""

    DOWN = 0
    RESERVED = 1
    OFFHOOK = 2
    DIALING = 3
    RING = 4
    RINGING = 5
    UP = 6
    BUSY = 7
    DIALING_OFFHOOK = 8
    PRE_RING = 9


@dataclass
class RecordOptions:
    format: str = "wav"
    escape_digits: str = "#"
    timeout_s: float = 300.0
    silence_s: float = 0.0  # 0 = disabled; resolution is one second
    beep: bool = False
    offset: int = 0  # samples to skip at the start of the recording


def _escape(digits: str) -> str:
    return digits or EMPTY_ARG


class AgiCommands:
    """One-line adapters over `command()`; mixed into Session."""

    command: Callable[..., Response]

    def answer(self) -> None:
        self.command("ANSWER").check()

    def hangup(self) -> None:
        self.command("HANGUP").check()

    def status(self) -> ChannelState:
        resp = self.command("CHANNEL STATUS").check()
        # the state comes back as the result code, not as a value
        if resp.result is None:
            raise ValueError(f"Failed to parse state {resp.result_text!r}")
        return ChannelState(resp.result)

    def exec(self, app: str, *args: str) -> str:
        """Run a dialplan application; returns its result (-2 when the app is missing)."""
        return self.command("EXEC", app, *args).res()

    def get_data(self, sound: str, timeout_s: float, max_digits: int) -> str:
        return self.command("GET DATA", sound or "silence/1", to_msec(timeout_s), str(max_digits)).res()

    def record(self, name: str, opts: Optional[RecordOptions] = None) -> None:
        o = opts or RecordOptions()
        tokens = [
            "RECORD FILE",
            name,
            o.format or "wav",
            o.escape_digits or "#",
            to_msec(o.timeout_s if o.timeout_s > 0 else 300.0),
        ]
        if o.offset > 0:
            tokens.append(str(o.offset))
        if o.beep:
            tokens.append("BEEP")
        if o.silence_s > 0:
            tokens.append("s=" + to_sec(o.silence_s))
        self.command(*tokens).check()

    def say_alpha(self, label: str, escape_digits: str = "") -> str:
        return self.command("SAY ALPHA", label, _escape(escape_digits)).val()

    def say_digits(self, number: str, escape_digits: str = "") -> str:
        return self.command("SAY DIGITS", number, _escape(escape_digits)).val()

    def say_number(self, number: str, escape_digits: str = "") -> str:
        return self.command("SAY NUMBER", number, _escape(escape_digits)).val()

    def say_phonetic(self, phrase: str, escape_digits: str = "") -> str:
        return self.command("SAY PHONETIC", phrase, _escape(escape_digits)).val()

    def say_date(self, when: datetime.datetime, escape_digits: str = "") -> str:
        return self.command("SAY DATE", to_epoch(when), _escape(escape_digits)).val()

    def say_time(self, when: datetime.datetime, escape_digits: str = "") -> str:
        return self.command("SAY TIME", to_epoch(when), _escape(escape_digits)).val()

    def say_datetime(self, when: datetime.datetime, escape_digits: str = "", fmt: str = "") -> str:
        if when.tzinfo is None:
            when = when.astimezone()
        zone = when.tzname() or "UTC"
        return self.command(
            "SAY DATETIME", to_epoch(when), _escape(escape_digits), fmt or DEFAULT_DATETIME_FORMAT, zone
        ).val()

    def stream_file(self, name: str, escape_digits: str = "", offset: int = 0) -> str:
        return self.command("STREAM FILE", name, _escape(escape_digits), str(offset)).val()

    def verbose(self, msg: str, level: int = 1) -> None:
        self.command("VERBOSE", json.dumps(msg), str(level)).check()

    def verbosef(self, fmt: str, *args: object) -> None:
        """printf-style verbose message at level 9."""
        self.verbose(fmt % args if args else fmt, 9)

    def wait_for_digit(self, timeout_s: float) -> str:
        """Return the DTMF digit received, or "" when none arrived in time."""
        resp = self.command("WAIT FOR DIGIT", to_msec(timeout_s)).check()
        code = resp.result
        if code is None or code <= 0 or code > 0x10FFFF:
            return ""
        ch = chr(code)
        return ch if ch.isprintable() else ""
