from __future__ import annotations

import argparse
import sys
from pathlib import Path

from fastagi.agi.protocol import HangupError
from fastagi.agi.session import Session
from fastagi.cli.run_server import build_trace
from fastagi.config import load_settings
from fastagi.routing.route_loader import resolve_handler


def main(argv: list[str] | None = None) -> None:
    # stdout carries the AGI protocol in this mode: diagnostics go to stderr only.
    s = load_settings()
    p = argparse.ArgumentParser(description="Run one AGI handler on stdin/stdout (standalone AGI).")
    p.add_argument("--handler", required=True, help="module:function taking a Session")
    p.add_argument("--eagi", action="store_true", help="Open the EAGI audio stream on fd 3")
    p.add_argument("--trace-dir", default="", help="Directory for trace.jsonl / trace.csv")
    p.add_argument("--debug", action="store_true", help="Echo every exchange to stderr")
    args = p.parse_args(argv)

    handler = resolve_handler(args.handler)
    trace = build_trace(
        Path(args.trace_dir) if args.trace_dir else s.trace_dir,
        s.sqlite_path,
        sys.stderr if args.debug else None,
    )

    session = Session.stdio(eagi=args.eagi, trace=trace)
    try:
        handler(session)
    except HangupError:
        print("[AGI] channel hung up", file=sys.stderr)
        raise SystemExit(0)
    finally:
        session.close()


if __name__ == "__main__":
    main()
