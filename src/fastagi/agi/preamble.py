from __future__ import annotations

from typing import BinaryIO, Dict


def decode_line(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\r\n")


def read_preamble(reader: BinaryIO) -> Dict[str, str]:
    """Read the `key: value` block Asterisk sends before the first command.

    Stops at the first empty line (consumed) or at EOF. Each line is split at
    the first colon only, so values such as `agi_network_script: a:b` keep
    their colons. Lines without a colon are ignored.
    """
    variables: Dict[str, str] = {}
    while True:
        raw = reader.readline()
        if not raw:
            break
        line = decode_line(raw)
        if line == "":
            break
        key, sep, value = line.partition(":")
        if not sep:
            continue
        variables[key.strip()] = value.strip()
    return variables
