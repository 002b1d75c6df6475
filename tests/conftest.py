from __future__ import annotations

import io
import socket
import threading
from typing import Callable, Dict, List, Tuple

import pytest

from fastagi.agi.session import Session


def preamble_bytes(variables: Dict[str, str]) -> bytes:
    return "".join(f"{k}: {v}\n" for k, v in variables.items()).encode("utf-8") + b"\n"


def scripted_session(replies: List[str], variables: Dict[str, str] | None = None, **kw) -> Tuple[Session, io.BytesIO]:
    """Session over in-memory streams: preamble then the canned reply lines."""
    data = preamble_bytes(variables or {"agi_request": "test.agi"})
    data += "".join(r + "\n" for r in replies).encode("utf-8")
    out = io.BytesIO()
    return Session(io.BytesIO(data), out, **kw), out


def sent_lines(out: io.BytesIO) -> List[str]:
    return out.getvalue().decode("utf-8").splitlines()


class FakeAsterisk:
    """Peer side of a socketpair: sends a preamble, answers each command line."""

    def __init__(self, sock: socket.socket, variables: Dict[str, str], reply: Callable[[str], str]) -> None:
        self.sock = sock
        self.variables = variables
        self.reply = reply
        self.received: List[str] = []
        self._thread = threading.Thread(target=self._run, daemon=True)

    def start(self) -> "FakeAsterisk":
        self._thread.start()
        return self

    def join(self, timeout_s: float = 5.0) -> None:
        self._thread.join(timeout_s)

    def _run(self) -> None:
        rfile = self.sock.makefile("rb")
        self.sock.sendall(preamble_bytes(self.variables))
        for raw in rfile:
            line = raw.decode("utf-8").rstrip("\n")
            self.received.append(line)
            self.sock.sendall((self.reply(line) + "\n").encode("utf-8"))
        rfile.close()


@pytest.fixture
def socket_pair():
    a, b = socket.socketpair()
    yield a, b
    for s in (a, b):
        try:
            s.close()
        except OSError:
            pass
