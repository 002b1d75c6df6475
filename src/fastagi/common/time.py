from __future__ import annotations

import datetime


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(tz=datetime.timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def to_msec(seconds: float) -> str:
    return str(int(1000 * seconds))


def to_sec(seconds: float) -> str:
    return str(int(seconds))


def to_epoch(when: datetime.datetime) -> str:
    return str(int(when.timestamp()))
