from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, TextIO

from fastagi.config import load_settings
from fastagi.reporting.trace import MultiSink, StreamTracer, TraceLogger, TraceSink
from fastagi.routing.route_loader import Router, load_routes
from fastagi.server.listener import FastAgiServer


def build_trace(
    trace_dir: Optional[Path], sqlite_path: Optional[Path], stream: Optional[TextIO] = None
) -> Optional[TraceSink]:
    sinks: List[TraceSink] = []
    if trace_dir is not None:
        sinks.append(TraceLogger(trace_dir))
    if sqlite_path is not None:
        from fastagi.storage.sqlite_store import SQLiteStore
        sinks.append(SQLiteStore(sqlite_path))
    if stream is not None:
        sinks.append(StreamTracer(stream))
    if not sinks:
        return None
    return sinks[0] if len(sinks) == 1 else MultiSink(sinks)


def main(argv: list[str] | None = None) -> None:
    s = load_settings()
    p = argparse.ArgumentParser(description="Serve AGI handlers over FastAGI.")
    p.add_argument("--host", default=s.host)
    p.add_argument("--port", type=int, default=s.port)
    p.add_argument("--routes", default="", help="Route table YAML (defaults to FASTAGI_ROUTES / ./routes.yaml / packaged)")
    p.add_argument("--trace-dir", default="", help="Directory for trace.jsonl / trace.csv")
    p.add_argument("--sqlite", default="", help="Optional path to SQLite db for command events")
    args = p.parse_args(argv)

    routes_path = Path(args.routes) if args.routes else s.routes_path
    router = Router(load_routes(routes_path))
    print(f"[FastAGI] {len(router.table.routes)} route(s): {', '.join(r.script for r in router.table.routes)}")

    trace = build_trace(
        Path(args.trace_dir) if args.trace_dir else s.trace_dir,
        Path(args.sqlite) if args.sqlite else s.sqlite_path,
    )

    server = FastAgiServer(args.host, args.port, router, trace=trace)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("[FastAGI] KeyboardInterrupt -> stopping")
        server.stop()


if __name__ == "__main__":
    main()
