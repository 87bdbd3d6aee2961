from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


@dataclass(slots=True)
class StageTimings:
    stages: dict[str, float] = field(default_factory=dict)

    def record(self, stage: str, elapsed_ms: float) -> None:
        self.stages[stage] = round(elapsed_ms, 3)

    @property
    def total_ms(self) -> float:
        return round(sum(self.stages.values()), 3)


@dataclass(slots=True)
class RunLogEntry:
    run_id: str
    converter: str
    source: str
    status: str
    warnings: list[str]
    error_code: str | None
    timings: StageTimings
    output_path: str | None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["timings"] = dict(self.timings.stages)
        payload["total_ms"] = self.timings.total_ms
        return payload


class RunLogger:
    def __init__(self, log_file: Path) -> None:
        self._log_file = log_file

    @property
    def log_file(self) -> Path:
        return self._log_file

    def append(self, entry: RunLogEntry) -> None:
        self._log_file.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(entry.to_dict(), ensure_ascii=False)
        with self._log_file.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")


class NullRunLogger:
    def append(self, entry: RunLogEntry) -> None:
        return None


def build_run_logger(log_file: Path | None) -> RunLogger | NullRunLogger:
    if log_file is None:
        return NullRunLogger()
    return RunLogger(log_file)


__all__ = [
    "NullRunLogger",
    "RunLogEntry",
    "RunLogger",
    "StageTimings",
    "build_run_logger",
]
