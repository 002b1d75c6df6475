from __future__ import annotations

from fastagi.agi.protocol import HangupError
from fastagi.agi.session import Session


def hello(session: Session) -> None:
    try:
        session.answer()
        session.stream_file("hello-world")
        session.hangup()
    except HangupError:
        return


def echo_digits(session: Session) -> None:
    try:
        session.answer()
        digits = session.get_data("beep", 5.0, 4)
        if digits:
            session.say_digits(digits)
        session.set("ECHOED_DIGITS", digits)
        session.hangup()
    except HangupError:
        return


def reject(session: Session) -> None:
    """Fallback for unknown scripts."""
    script = session.variables.get("agi_network_script", "")
    session.verbose(f"fastagi: no handler for {script!r}", 3)
    session.hangup()
