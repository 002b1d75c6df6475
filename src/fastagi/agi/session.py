from __future__ import annotations

import os
import socket
import sys
import threading
import time
from types import MappingProxyType
from typing import BinaryIO, Mapping, Optional

from fastagi.agi.commands import AgiCommands
from fastagi.agi.mrcp import MrcpCommands
from fastagi.agi.preamble import decode_line, read_preamble
from fastagi.agi.protocol import E_TRANSPORT, Response, failure, parse_response
from fastagi.common.ids import make_session_id
from fastagi.reporting.trace import CommandEvent, TraceSink

# Asterisk hands the EAGI audio stream to the script on this descriptor
EAGI_FD = 3


def quote_arg(value: str) -> str:
    if value and not any(c.isspace() for c in value) and '"' not in value:
        return value
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class Session(AgiCommands, MrcpCommands):
    """One AGI call: the transport, the preamble variables and the command lock.

    The preamble is read synchronously in the constructor, so `variables` is
    complete before the first command can be issued. Commands are serialized
    by a per-session lock held across the write and the read of the reply.
    """

    def __init__(
        self,
        reader: BinaryIO,
        writer: BinaryIO,
        *,
        eagi: Optional[BinaryIO] = None,
        conn: Optional[socket.socket] = None,
        trace: Optional[TraceSink] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._eagi = eagi
        self._conn = conn
        self._trace = trace
        self._lock = threading.Lock()
        self.session_id = session_id or make_session_id()

        self._variables = read_preamble(reader)
        self._emit(CommandEvent.for_preamble(session_id=self.session_id, variables=self._variables))

    @classmethod
    def stdio(cls, *, eagi: bool = False, trace: Optional[TraceSink] = None) -> "Session":
        """Standalone mode: Asterisk runs the script with the call on stdin/stdout."""
        eagi_stream = os.fdopen(EAGI_FD, "rb") if eagi else None
        return cls(sys.stdin.buffer, sys.stdout.buffer, eagi=eagi_stream, trace=trace)

    @classmethod
    def from_socket(cls, conn: socket.socket, *, trace: Optional[TraceSink] = None) -> "Session":
        """Network mode: the session owns the accepted FastAGI connection."""
        return cls(conn.makefile("rb"), conn.makefile("wb"), conn=conn, trace=trace)

    @property
    def variables(self) -> Mapping[str, str]:
        return MappingProxyType(self._variables)

    @property
    def eagi(self) -> Optional[BinaryIO]:
        return self._eagi

    def command(self, *tokens: str) -> Response:
        """Send one command line and parse the single-line reply.

        Never raises for protocol outcomes: hangup, transport and parse
        failures come back as a Response with error_code set. Multi-line
        replies are not supported; only the first non-empty line is read.
        """
        if any("\n" in t or "\r" in t for t in tokens):
            raise ValueError(f"command tokens must not contain line breaks: {tokens!r}")
        line = " ".join(tokens)
        with self._lock:
            t0 = time.time()
            resp = self._exchange(line)
            if self._trace is not None:
                dt_ms = int((time.time() - t0) * 1000)
                self._emit(
                    CommandEvent.for_command(session_id=self.session_id, command=line, response=resp, duration_ms=dt_ms)
                )
        return resp

    def _emit(self, ev: CommandEvent) -> None:
        if self._trace is None:
            return
        try:
            self._trace.log(ev)
        except Exception as e:
            # sink errors never reach the caller
            print(f"[AGI] trace sink failed: {e}", file=sys.stderr)

    def _exchange(self, line: str) -> Response:
        try:
            self._writer.write((line + "\n").encode("utf-8"))
            self._writer.flush()
        except (OSError, ValueError) as e:
            return failure(E_TRANSPORT, f"failed to send command: {e}")

        try:
            raw = self._read_reply_line()
        except (OSError, ValueError) as e:
            return failure(E_TRANSPORT, f"failed to read response: {e}")
        if raw is None:
            return failure(E_TRANSPORT, "connection closed before response")
        return parse_response(raw)

    def _read_reply_line(self) -> Optional[str]:
        while True:
            raw = self._reader.readline()
            if not raw:
                return None
            line = decode_line(raw)
            if line.strip():
                return line

    def get(self, name: str) -> str:
        """Value of a channel variable ("" when unset)."""
        return self.command("GET VARIABLE", name).val()

    def set(self, name: str, value: str) -> None:
        self.command("SET VARIABLE", name, quote_arg(value)).check()

    def close(self) -> None:
        """Close the owned connection, if any. Safe to call more than once."""
        conn, self._conn = self._conn, None
        if conn is None:
            return
        for f in (self._writer, self._reader):
            try:
                f.close()
            except OSError:
                pass
        conn.close()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
