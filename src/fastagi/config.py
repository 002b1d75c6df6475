from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    routes_path: Optional[Path]
    trace_dir: Optional[Path]
    sqlite_path: Optional[Path]


def _opt_path(name: str) -> Optional[Path]:
    v = os.getenv(name, "").strip()
    return Path(v) if v else None


def load_settings() -> Settings:
    load_dotenv(override=False)

    host = os.getenv("FASTAGI_HOST", "localhost")
    port = int(os.getenv("FASTAGI_PORT", "4573"))

    return Settings(
        host=host,
        port=port,
        routes_path=_opt_path("FASTAGI_ROUTES"),
        trace_dir=_opt_path("FASTAGI_TRACE_DIR"),
        sqlite_path=_opt_path("FASTAGI_SQLITE"),
    )
