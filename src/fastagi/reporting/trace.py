from __future__ import annotations

import csv
import json
import threading
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, TextIO

from fastagi.agi.protocol import Response
from fastagi.common.time import utc_now_iso


TRACE_SCHEMA_VERSION = 1

# Stable CSV column order (append-only evolution: only add new columns at the end)
CSV_COLUMNS: List[str] = [
    "schema_version",
    "timestamp",
    "session_id",
    "kind",
    "command",
    "raw",
    "status",
    "result",
    "result_text",
    "value",
    "ok",
    "error_code",
    "message",
    "summary",
    "duration_ms",
]


@dataclass(frozen=True)
class CommandEvent:
    schema_version: int
    timestamp: str
    session_id: str
    kind: str  # "preamble" | "command"

    # Exchange
    command: str
    raw: str
    status: int
    result: Optional[int]
    result_text: str
    value: str

    # Outcome
    ok: bool
    error_code: Optional[str]
    message: str
    summary: str
    duration_ms: int

    # Extra payload (kept in JSONL only)
    data: Dict[str, Any]

    @staticmethod
    def for_command(*, session_id: str, command: str, response: Response, duration_ms: int) -> "CommandEvent":
        return CommandEvent(
            schema_version=TRACE_SCHEMA_VERSION,
            timestamp=utc_now_iso(),
            session_id=session_id,
            kind="command",
            command=command,
            raw=response.raw,
            status=response.status,
            result=response.result,
            result_text=response.result_text,
            value=response.value,
            ok=response.ok,
            error_code=response.error_code,
            message=response.message,
            summary=response.summary(),
            duration_ms=int(duration_ms),
            data={},
        )

    @staticmethod
    def for_preamble(*, session_id: str, variables: Mapping[str, str]) -> "CommandEvent":
        return CommandEvent(
            schema_version=TRACE_SCHEMA_VERSION,
            timestamp=utc_now_iso(),
            session_id=session_id,
            kind="preamble",
            command="",
            raw="",
            status=0,
            result=None,
            result_text="",
            value="",
            ok=True,
            error_code=None,
            message=f"{len(variables)} variables",
            summary="",
            duration_ms=0,
            data={"variables": dict(variables)},
        )

    def to_jsonl_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_csv_row(self) -> Dict[str, Any]:
        d = asdict(self)
        d.pop("data", None)  # CSV is flat
        return d

    def to_text(self) -> str:
        if self.kind == "preamble":
            return "\n".join(f"${k}={v}" for k, v in self.data.get("variables", {}).items())
        return f"#{self.command} -> {self.raw} -> {self.summary}"


class TraceSink(Protocol):
    def log(self, ev: CommandEvent) -> None:
        ...


class TraceLogger:
    """Append-only trace: one JSONL row per event + mirrored CSV row.

    Shared by every session of a server, so appends are serialized.
    """

    def __init__(self, trace_dir: Path) -> None:
        self.trace_dir = trace_dir
        self.trace_dir.mkdir(parents=True, exist_ok=True)
        self.jsonl_path = self.trace_dir / "trace.jsonl"
        self.csv_path = self.trace_dir / "trace.csv"
        self._lock = threading.Lock()

        # Initialize CSV header once
        if not self.csv_path.exists():
            with self.csv_path.open("w", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
                writer.writeheader()

    def log(self, ev: CommandEvent) -> None:
        with self._lock:
            with self.jsonl_path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(ev.to_jsonl_dict(), ensure_ascii=False) + "\n")

            with self.csv_path.open("a", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
                row = ev.to_csv_row()
                writer.writerow({k: row.get(k, "") for k in CSV_COLUMNS})


class StreamTracer:
    """Human-readable trace lines written to a text stream (stderr in stdio mode)."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream
        self._lock = threading.Lock()

    def log(self, ev: CommandEvent) -> None:
        with self._lock:
            self.stream.write(f"[{ev.session_id}] {ev.to_text()}\n")
            self.stream.flush()


class MultiSink:
    def __init__(self, sinks: List[TraceSink]) -> None:
        self.sinks = list(sinks)

    def log(self, ev: CommandEvent) -> None:
        for sink in self.sinks:
            sink.log(ev)


def read_trace_jsonl(path: Path) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    if not path.exists():
        return rows
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            rows.append(json.loads(line))
    return rows
