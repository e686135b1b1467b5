# src/circtensor/collaborators/feynver.py
"""
Equivalence checking with the ``feynver`` executable.

Both circuits are written as ``.qc`` files into a temporary directory and
compared with ``feynver -postselect-ancillas -ignore-global-phase``. Output
starting with ``Equal`` is a pass.
"""
from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from circtensor.circuits import Circuit, qc
from circtensor.collaborators.base import EquivalenceChecker, VerificationResult, Verdict

logger = logging.getLogger(__name__)


class FeynverChecker(EquivalenceChecker):
    """Runs ``feynver`` on the two circuits.

    Parameters
    ----------
    executable : str
        Name or path of the ``feynver`` binary.
    timeout : float, optional
        Seconds before the check is given up as inconclusive.
    """

    name = "feynver"

    def __init__(self, executable: str = "feynver", timeout: Optional[float] = None):
        self.executable = executable
        self.timeout = timeout

    def available(self) -> bool:
        return shutil.which(self.executable) is not None

    def check(self, original: Circuit, new: Circuit, num_inputs: int) -> VerificationResult:
        if not self.available():
            return VerificationResult(
                Verdict.INCONCLUSIVE, f"`{self.executable}` not found on PATH", self.name
            )

        with tempfile.TemporaryDirectory() as tmp:
            left = qc.dump(original, Path(tmp) / "circ1.qc", num_inputs)
            right = qc.dump(new, Path(tmp) / "circ2.qc", num_inputs)
            cmd = [
                self.executable,
                "-postselect-ancillas",
                "-ignore-global-phase",
                str(left),
                str(right),
            ]
            logger.debug("Running %s", " ".join(cmd))
            try:
                proc = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
            except subprocess.TimeoutExpired:
                return VerificationResult(
                    Verdict.INCONCLUSIVE, f"timed out after {self.timeout}s", self.name
                )

        proof = proc.stdout
        if proof.startswith("Equal"):
            return VerificationResult(Verdict.EQUAL, proof, self.name)
        if proof.startswith("Not equal"):
            return VerificationResult(Verdict.NOT_EQUAL, proof, self.name)
        return VerificationResult(Verdict.INCONCLUSIVE, proof + proc.stderr, self.name)
