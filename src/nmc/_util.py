"""Shared utilities for nmc: debug logging, structured warnings."""

import os
import sys
from pathlib import Path
from typing import List

_DEBUG = bool(os.environ.get("NMC_DEBUG", ""))


def debug(label: str, msg: str) -> None:
    """Print a debug message to stderr when NMC_DEBUG is set."""
    if _DEBUG:
        print(f"[nmc] {label}: {msg}", file=sys.stderr)


def sorted_entries(d: Path) -> List[Path]:
    """List directory contents in name order. OSError propagates."""
    return sorted(d.iterdir(), key=lambda p: p.name)


def make_warning(source: str, message: str, severity: str = "warning") -> dict:
    """Build a structured warning dict with consistent keys."""
    return {"source": source, "message": message, "severity": severity}
