# src/circtensor/collaborators/__init__.py
"""
External collaborators: pre-optimizers, Hadamard minimizers and
equivalence checkers.

Usage
-----
>>> from circtensor.collaborators import default_checker, Verdict
>>> result = default_checker().check(original, compiled, num_inputs=3)
>>> result.verdict is Verdict.EQUAL
"""

from .base import (
    CircuitPass,
    EquivalenceChecker,
    VerificationResult,
    Verdict,
)
from .checkers import (
    ChainChecker,
    PhasePolynomialChecker,
    StimTableauChecker,
    UnitaryChecker,
)
from .command import ExternalCommandPass
from .feynver import FeynverChecker
from .zx import PyZXPreoptimizer


def default_checker() -> ChainChecker:
    """Exact in-process checkers first, ``feynver`` for everything else."""
    return ChainChecker([
        StimTableauChecker(),
        PhasePolynomialChecker(),
        UnitaryChecker(),
        FeynverChecker(),
    ])


__all__ = [
    "CircuitPass",
    "EquivalenceChecker",
    "VerificationResult",
    "Verdict",
    "ChainChecker",
    "PhasePolynomialChecker",
    "StimTableauChecker",
    "UnitaryChecker",
    "ExternalCommandPass",
    "FeynverChecker",
    "PyZXPreoptimizer",
    "default_checker",
]
