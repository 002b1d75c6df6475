from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List

from fastagi.reporting.trace import CommandEvent


SCHEMA_VERSION = 1


class SQLiteStore:
    """Optional append-only trace sink for replay and querying."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self) -> None:
        with sqlite3.connect(self.db_path) as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS command_events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    schema_version INTEGER NOT NULL,
                    timestamp TEXT NOT NULL,
                    session_id TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    command TEXT NOT NULL,
                    raw TEXT NOT NULL,
                    status INTEGER NOT NULL,
                    result INTEGER,
                    result_text TEXT NOT NULL,
                    value TEXT NOT NULL,
                    ok INTEGER NOT NULL,
                    error_code TEXT,
                    message TEXT,
                    summary TEXT,
                    duration_ms INTEGER NOT NULL,
                    data_json TEXT
                );
                """
            )
            con.execute("CREATE INDEX IF NOT EXISTS idx_session_id ON command_events(session_id);")
            con.commit()

    def log(self, ev: CommandEvent) -> None:
        with self._lock, sqlite3.connect(self.db_path) as con:
            con.execute(
                """
                INSERT INTO command_events (
                    schema_version,timestamp,session_id,kind,command,raw,status,result,result_text,
                    value,ok,error_code,message,summary,duration_ms,data_json
                ) VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?)
                """,
                (
                    ev.schema_version,
                    ev.timestamp,
                    ev.session_id,
                    ev.kind,
                    ev.command,
                    ev.raw,
                    ev.status,
                    ev.result,
                    ev.result_text,
                    ev.value,
                    1 if ev.ok else 0,
                    ev.error_code,
                    ev.message,
                    ev.summary,
                    ev.duration_ms,
                    json.dumps(ev.data, ensure_ascii=False),
                ),
            )
            con.commit()

    def session_events(self, session_id: str) -> List[Dict[str, Any]]:
        with sqlite3.connect(self.db_path) as con:
            con.row_factory = sqlite3.Row
            rows = con.execute(
                "SELECT * FROM command_events WHERE session_id = ? ORDER BY id", (session_id,)
            ).fetchall()
        return [dict(r) for r in rows]
