from __future__ import annotations

import importlib
import importlib.resources as importlib_resources
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from fastagi.agi.session import Session
from fastagi.routing.route_schema import RouteTable
from fastagi.server.listener import Handler


def _parse_table(raw: Dict[str, Any], source: str) -> RouteTable:
    try:
        return RouteTable.model_validate(raw)
    except ValidationError as e:
        # Re-raise with a cleaner message for CLI usage
        raise ValueError(f"Invalid route table YAML: {source}\n{e}") from e


def load_routes(path: Optional[Path] = None) -> RouteTable:
    """Load + validate the route table.

    Order:
    1) Explicit path arg (must exist)
    2) FASTAGI_ROUTES env var (if set + exists)
    3) CWD-relative routes.yaml
    4) Packaged default (fastagi/resources/routes.yaml)
    """
    if path is not None:
        if not path.exists():
            raise ValueError(f"Route table not found: {path}")
        return _parse_table(yaml.safe_load(path.read_text(encoding="utf-8")) or {}, str(path))

    env_path = os.getenv("FASTAGI_ROUTES", "").strip()
    if env_path:
        p = Path(env_path)
        if p.exists():
            return _parse_table(yaml.safe_load(p.read_text(encoding="utf-8")) or {}, str(p))

    dev = Path("routes.yaml")
    if dev.exists():
        return _parse_table(yaml.safe_load(dev.read_text(encoding="utf-8")) or {}, str(dev))

    txt = importlib_resources.files("fastagi").joinpath("resources/routes.yaml").read_text(encoding="utf-8")
    return _parse_table(yaml.safe_load(txt) or {}, "fastagi/resources/routes.yaml")


def resolve_handler(ref: str) -> Handler:
    """Import `module:function` and return the callable."""
    module_name, _, attr = ref.partition(":")
    module = importlib.import_module(module_name)
    fn = getattr(module, attr, None)
    if not callable(fn):
        raise ValueError(f"Handler {ref} is not callable")
    return fn


def script_name(variables: Dict[str, str]) -> str:
    """Script path requested by the dialplan, e.g. agi://host/hello?x=1 -> hello."""
    script = variables.get("agi_network_script") or variables.get("agi_request", "")
    if "://" in script:
        script = script.split("://", 1)[1].partition("/")[2]
    return script.partition("?")[0].strip("/")


class Router:
    """Dispatch a session to the handler registered for its script."""

    def __init__(self, table: RouteTable) -> None:
        self.table = table
        self._handlers: Dict[str, Handler] = {r.script: resolve_handler(r.handler) for r in table.routes}
        self._default: Optional[Handler] = (
            resolve_handler(table.default_handler) if table.default_handler is not None else None
        )

    def lookup(self, script: str) -> Optional[Handler]:
        return self._handlers.get(script, self._default)

    def __call__(self, session: Session) -> None:
        name = script_name(dict(session.variables))
        handler = self.lookup(name)
        if handler is None:
            print(f"[FastAGI] no route for script {name!r}; hanging up")
            session.hangup()
            return
        handler(session)
