"""
.env file persistence — the installation's environment configuration.

Docker Compose reads the same file, so rendering keeps to plain
``KEY=value`` lines and quotes only values that need it.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

_NEEDS_QUOTES = set(" \t#'\"$`\\")


def parse_env(text: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines; comments and blank lines are skipped."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        # Strip surrounding quotes
        if (
            len(value) >= 2
            and value[0] == value[-1]
            and value[0] in ('"', "'")
        ):
            quote, value = value[0], value[1:-1]
            if quote == '"':
                value = _unescape(value)
        values[key] = value
    return values


def _unescape(value: str) -> str:
    """Undo the backslash escapes ``render_env`` writes inside double quotes."""
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, "")
            if nxt not in ("\\", '"'):
                out.append(ch)
            out.append(nxt)
        else:
            out.append(ch)
    return "".join(out)


def render_env(config: Mapping[str, str], header: str | None = None) -> str:
    """Render a configuration as .env text, keys sorted."""
    lines: list[str] = []
    if header:
        lines.extend(f"# {h}" for h in header.splitlines())
        lines.append("")
    for key in sorted(config):
        value = str(config[key])
        if value and _NEEDS_QUOTES & set(value):
            value = '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
        lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n"


def load_env_file(path: Path) -> dict[str, str]:
    """Read a .env file; a missing file is an empty configuration."""
    if not path.is_file():
        logger.debug("No env file at %s", path)
        return {}
    return parse_env(path.read_text(encoding="utf-8"))


def save_env_file(config: Mapping[str, str], path: Path, header: str | None = None) -> None:
    """Write a .env file atomically (temp file in the same directory, then rename)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    content = render_env(config, header=header)

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".env_", suffix=".tmp")
    os.close(fd)
    tmp = Path(tmp_path)
    try:
        tmp.write_text(content, encoding="utf-8")
        tmp.rename(path)
        logger.debug("Env file saved to %s (%d keys)", path, len(config))
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
