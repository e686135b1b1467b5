# src/circtensor/collaborators/command.py
"""Circuit passes implemented by an external command."""
from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Sequence

from circtensor.circuits import Circuit, qasm
from circtensor.collaborators.base import CircuitPass
from circtensor.exceptions import ExternalToolError

logger = logging.getLogger(__name__)


class ExternalCommandPass(CircuitPass):
    """Run a command that reads one QASM file and writes another.

    Parameters
    ----------
    command : Sequence[str]
        Argument list; ``{input}`` and ``{output}`` are replaced by the
        file paths, e.g. ``["hopt", "{input}", "-o", "{output}"]``.
    name : str
        Label used in logs.
    """

    def __init__(self, command: Sequence[str], name: str = "command"):
        if not command:
            raise ValueError("empty command")
        self.command = list(command)
        self.name = name

    def run(self, circuit: Circuit) -> Circuit:
        with tempfile.TemporaryDirectory() as tmp:
            source = qasm.dump(circuit, Path(tmp) / "input.qasm")
            target = Path(tmp) / "output.qasm"
            args = [a.format(input=source, output=target) for a in self.command]
            logger.debug("Running %s", " ".join(args))
            try:
                proc = subprocess.run(args, capture_output=True, text=True)
            except OSError as e:
                raise ExternalToolError(f"cannot run {self.name}: {e}") from e
            if proc.returncode != 0:
                raise ExternalToolError(
                    f"{self.name} exited with status {proc.returncode}: {proc.stderr.strip()}"
                )
            if not target.exists():
                raise ExternalToolError(f"{self.name} did not write {target.name}")
            return qasm.load(target)
