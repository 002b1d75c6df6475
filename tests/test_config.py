from pathlib import Path

from fastagi.config import load_settings


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("FASTAGI_HOST", "0.0.0.0")
    monkeypatch.setenv("FASTAGI_PORT", "5000")
    monkeypatch.setenv("FASTAGI_TRACE_DIR", "traces")
    monkeypatch.setenv("FASTAGI_ROUTES", "")
    monkeypatch.setenv("FASTAGI_SQLITE", "")
    s = load_settings()
    assert (s.host, s.port) == ("0.0.0.0", 5000)
    assert s.trace_dir == Path("traces")
    assert s.routes_path is None
    assert s.sqlite_path is None
