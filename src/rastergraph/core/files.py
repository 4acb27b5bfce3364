from __future__ import annotations

import os
from pathlib import Path


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def make_read_only(path: Path) -> None:
    current_mode = path.stat().st_mode
    # Strip write permissions for user/group/other.
    path.chmod(current_mode & ~0o222)


def make_writable(path: Path) -> None:
    current_mode = path.stat().st_mode
    path.chmod(current_mode | 0o200)


def write_bytes_atomic(data: bytes, dst: Path) -> None:
    ensure_directory(dst.parent)
    temp_path = dst.parent / f".{dst.name}.tmp"
    temp_path.write_bytes(data)
    os.replace(temp_path, dst)
