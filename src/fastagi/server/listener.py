from __future__ import annotations

import socket
import threading
from typing import Callable, Optional, Tuple

from fastagi.agi.session import Session
from fastagi.reporting.trace import TraceSink

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 4573
DEFAULT_ADDRESS = f"{DEFAULT_HOST}:{DEFAULT_PORT}"

Handler = Callable[[Session], None]


class ListenerError(Exception):
    """Bind or accept failure; fatal to the listener."""


def parse_address(address: Optional[str]) -> Tuple[str, int]:
    """Split `host:port`; empty or None means localhost:4573."""
    s = (address or "").strip() or DEFAULT_ADDRESS
    host, sep, port = s.rpartition(":")
    if not sep:
        raise ValueError(f"address must be host:port, got {address!r}")
    try:
        return host or DEFAULT_HOST, int(port)
    except ValueError as e:
        raise ValueError(f"bad port in address {address!r}") from e


class FastAgiServer:
    """FastAGI TCP server (thread-per-connection).

    Every accepted connection gets its own thread, which builds a Session
    (reading the preamble), runs the handler and closes the session. Handler
    failures stay in their thread; only bind/accept failures stop the server.
    """

    def __init__(self, host: str, port: int, handler: Handler, *, trace: Optional[TraceSink] = None) -> None:
        self.host = host
        self.port = port
        self.handler = handler
        self.trace = trace
        self._stop = threading.Event()
        self._ready = threading.Event()
        self._sock: Optional[socket.socket] = None

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); differs from the requested port when it was 0."""
        if self._sock is None:
            return self.host, self.port
        return self._sock.getsockname()[:2]

    def wait_ready(self, timeout_s: float = 5.0) -> bool:
        return self._ready.wait(timeout_s)

    def stop(self) -> None:
        self._stop.set()
        if self._sock is not None:
            try:
                self._sock.close()
            except Exception:
                pass

    def _handle(self, conn: socket.socket, addr: Tuple[str, int]) -> None:
        try:
            session = Session.from_socket(conn, trace=self.trace)
        except OSError:
            # peer went away during the preamble
            conn.close()
            return
        try:
            self.handler(session)
        finally:
            session.close()

    def serve_forever(self) -> None:
        s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((self.host, self.port))
            s.listen()
        except OSError as e:
            s.close()
            raise ListenerError(f"failed to bind server on {self.host}:{self.port}: {e}") from e

        with s:
            self._sock = s
            s.settimeout(0.5)
            print(f"[FastAGI] listening on {self.address[0]}:{self.address[1]}")
            self._ready.set()

            while not self._stop.is_set():
                try:
                    conn, addr = s.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    if self._stop.is_set():
                        break
                    raise ListenerError(f"failed to accept TCP connection: {e}") from e
                conn.settimeout(None)
                threading.Thread(target=self._handle, args=(conn, addr), daemon=True).start()

            print("[FastAGI] shutdown complete")


def listen(address: Optional[str], handler: Handler, *, trace: Optional[TraceSink] = None) -> None:
    """Serve `handler` over FastAGI on `address` until an accept failure."""
    host, port = parse_address(address)
    FastAgiServer(host, port, handler, trace=trace).serve_forever()
