from __future__ import annotations

import argparse


def main() -> None:
    p = argparse.ArgumentParser(prog="fastagi", description="Asterisk AGI / FastAGI handler runner")
    sub = p.add_subparsers(dest="cmd", required=True)

    # serve
    p_serve = sub.add_parser("serve", help="Run the FastAGI TCP server")
    p_serve.add_argument("--host", default="")
    p_serve.add_argument("--port", default="")
    p_serve.add_argument("--routes", default="", help="Path to route table YAML")
    p_serve.add_argument("--trace-dir", default="")
    p_serve.add_argument("--sqlite", default="", help="Optional path to SQLite db for command events")
    p_serve.set_defaults(_entry="fastagi.cli.run_server")

    # stdio
    p_stdio = sub.add_parser("stdio", help="Run one handler as a standalone AGI script")
    p_stdio.add_argument("--handler", required=True, help="module:function")
    p_stdio.add_argument("--eagi", action="store_true")
    p_stdio.add_argument("--trace-dir", default="")
    p_stdio.add_argument("--debug", action="store_true")
    p_stdio.set_defaults(_entry="fastagi.cli.run_stdio")

    args = p.parse_args()

    if args._entry == "fastagi.cli.run_server":
        from fastagi.cli.run_server import main as _m

        argv = []
        for flag, v in (("--host", args.host), ("--port", args.port), ("--routes", args.routes),
                        ("--trace-dir", args.trace_dir), ("--sqlite", args.sqlite)):
            if v:
                argv += [flag, v]
        _m(argv)
        return

    if args._entry == "fastagi.cli.run_stdio":
        from fastagi.cli.run_stdio import main as _m

        argv = ["--handler", args.handler]
        if args.eagi:
            argv.append("--eagi")
        if args.trace_dir:
            argv += ["--trace-dir", args.trace_dir]
        if args.debug:
            argv.append("--debug")
        _m(argv)
        return

    raise SystemExit(2)
