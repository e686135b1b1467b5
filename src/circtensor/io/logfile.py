# src/circtensor/io/logfile.py
"""Run logs: one pretty-printed JSON document per CLI invocation."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from circtensor import __version__


@dataclass
class RunLog:
    """Invocation details and per-file statistics of one run.

    Attributes
    ----------
    command : str
        ``compile`` or ``resynth``.
    argv : List[str]
        Command-line arguments.
    timestamp_ms : int
        Start of the run; names the log file.
    seed : Optional[int]
        Seed actually used by the split search.
    options : Dict[str, Any]
        Resolved configuration.
    files : List[Dict[str, Any]]
        One stats dictionary per input file.
    """
    command: str
    argv: List[str] = field(default_factory=list)
    timestamp_ms: int = 0
    seed: Optional[int] = None
    options: Dict[str, Any] = field(default_factory=dict)
    files: List[Dict[str, Any]] = field(default_factory=list)

    def add(self, stats: Any) -> None:
        self.files.append(stats.to_dict() if hasattr(stats, "to_dict") else dict(stats))

    @property
    def failures(self) -> int:
        return sum(1 for f in self.files if f.get("error"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": __version__,
            "invocation": {
                "command": self.command,
                "argv": list(self.argv),
                "timestamp_ms": self.timestamp_ms,
                "seed": self.seed,
                "options": self.options,
            },
            "files": self.files,
        }


def log_path(directory: Union[str, Path], timestamp_ms: int) -> Path:
    return Path(directory) / f"run_{timestamp_ms}.log"


def write_run_log(log: RunLog, directory: Union[str, Path] = ".") -> Path:
    path = log_path(directory, log.timestamp_ms)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(log.to_dict(), indent=2, default=str) + "\n")
    return path


def read_run_log(path: Union[str, Path]) -> Dict[str, Any]:
    return json.loads(Path(path).read_text())


def summarize(files: Sequence[Dict[str, Any]]) -> str:
    """One line per file for the end-of-run report."""
    lines = []
    for f in files:
        name = Path(f.get("path", "?")).name
        if f.get("error"):
            lines.append(f"{name}: FAILED ({f['error']})")
        elif "blocks" in f:
            lines.append(
                f"{name}: {len(f['blocks'])} block(s), {f.get('ancilla', 0)} ancilla, "
                f"T-count {f['tcount']['initial']}"
            )
        else:
            lines.append(f"{name}: T-count {7 * f['nccz'] + 3 * f['ncs'] + f['nt']}")
    return "\n".join(lines)
