# src/circtensor/collaborators/base.py
"""
Interfaces of the external tools the compiler can call.

Each collaborator exposes one narrow capability: a :class:`CircuitPass`
rewrites a circuit into an equivalent one, an :class:`EquivalenceChecker`
compares two circuits. Concrete implementations wrap a library or an
executable and never leak its types into the compiler.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto

from circtensor.circuits import Circuit


class Verdict(Enum):
    """Outcome of an equivalence check."""
    EQUAL = auto()
    NOT_EQUAL = auto()
    INCONCLUSIVE = auto()


@dataclass
class VerificationResult:
    """Verdict plus whatever the checker printed or concluded.

    Attributes
    ----------
    verdict : Verdict
    detail : str
        Proof, counterexample or reason for an inconclusive verdict.
    checker : str
        Name of the checker that decided.
    """
    verdict: Verdict
    detail: str = ""
    checker: str = ""

    @property
    def passed(self) -> bool:
        return self.verdict is Verdict.EQUAL


class CircuitPass(ABC):
    """A semantics-preserving circuit rewrite (pre-optimizer, H minimizer)."""

    name: str = "pass"

    @abstractmethod
    def run(self, circuit: Circuit) -> Circuit:
        """Return a circuit equivalent to ``circuit`` up to global phase."""
        pass


class EquivalenceChecker(ABC):
    """Decides whether two circuits implement the same operator."""

    name: str = "checker"

    @abstractmethod
    def check(self, original: Circuit, new: Circuit, num_inputs: int) -> VerificationResult:
        """Compare ``new`` against ``original``.

        Parameters
        ----------
        original : Circuit
            Reference circuit.
        new : Circuit
            Candidate circuit. Qubits at and above ``num_inputs`` are
            ancillas prepared and post-selected in |0>.
        num_inputs : int
            Number of qubits carrying the input state.
        """
        pass
