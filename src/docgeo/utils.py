from __future__ import annotations

import hashlib
import os
import shutil
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .errors import input_not_found


def generate_run_id(prefix: str = "run") -> str:
    epoch_ms = int(time.time() * 1000)
    random_bits = hashlib.sha256(os.urandom(16)).hexdigest()[:8]
    return f"{prefix}-{epoch_ms}-{random_bits}"


def require_file(path: Path, label: str = "Input file") -> Path:
    if not path.exists():
        raise input_not_found(f"{label} not found: {path}")
    return path


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding=encoding) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)


@contextmanager
def staged_output(destination: Path) -> Iterator[Path]:
    """Yield a scratch path named like *destination* inside a private directory.

    Every file written next to the scratch path with the same stem (shapefile
    sidecars, for instance) is moved beside *destination* once the block exits
    cleanly. On error the scratch directory is discarded.
    """

    destination.parent.mkdir(parents=True, exist_ok=True)
    workdir = Path(tempfile.mkdtemp(prefix=".docgeo-", dir=destination.parent))
    try:
        scratch = workdir / destination.name
        yield scratch
        for produced in sorted(workdir.iterdir()):
            if produced.stem != scratch.stem:
                continue
            os.replace(produced, destination.with_name(destination.stem + produced.suffix))
    finally:
        shutil.rmtree(workdir, ignore_errors=True)


def normalize_newlines(text: str) -> str:
    """Convert CR and CRLF line endings to LF and end the text with one newline."""

    return text.replace("\r\n", "\n").replace("\r", "\n").rstrip("\n") + "\n"


def elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
