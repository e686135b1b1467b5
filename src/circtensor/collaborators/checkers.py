# src/circtensor/collaborators/checkers.py
"""
In-process equivalence checkers.

Each checker handles one class of circuits exactly and reports
``INCONCLUSIVE`` for anything outside it, so they can be chained:

- StimTableauChecker: Clifford circuits without ancillas (stim tableaux)
- PhasePolynomialChecker: CNOT+phase circuits without ancillas
- UnitaryChecker: any small circuit, ancillas post-selected in |0>
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from circtensor.circuits import Circuit, GateKind
from circtensor.circuits.simulate import (
    MAX_SIMULATED_QUBITS,
    postselected_operator,
    proportional,
)
from circtensor.collaborators.base import EquivalenceChecker, VerificationResult, Verdict
from circtensor.exceptions import UnsupportedGateError
from circtensor.phasepoly import extract_phase_polynomial

logger = logging.getLogger(__name__)


def _uses_ancillas(circuit: Circuit, num_inputs: int) -> bool:
    return any(q >= num_inputs for q in circuit.qubits_used())


class StimTableauChecker(EquivalenceChecker):
    """Compares Clifford circuits through their stabilizer tableaux."""

    name = "stim"

    def check(self, original: Circuit, new: Circuit, num_inputs: int) -> VerificationResult:
        if not (original.is_clifford() and new.is_clifford()):
            return VerificationResult(Verdict.INCONCLUSIVE, "non-Clifford gates", self.name)
        if _uses_ancillas(original, num_inputs) or _uses_ancillas(new, num_inputs):
            return VerificationResult(Verdict.INCONCLUSIVE, "ancillas are not supported", self.name)

        n = max(num_inputs, 1)
        left = Circuit(original.gates, n).to_stim().to_tableau()
        right = Circuit(new.gates, n).to_stim().to_tableau()
        if left == right:
            return VerificationResult(Verdict.EQUAL, "Equal tableaux", self.name)
        return VerificationResult(
            Verdict.NOT_EQUAL, f"Tableaux differ:\n{left}\n---\n{right}", self.name
        )


class PhasePolynomialChecker(EquivalenceChecker):
    """Compares CNOT+phase circuits by evaluating their phase polynomials.

    Parameters
    ----------
    max_qubits : int
        Largest register evaluated exhaustively.
    """

    name = "phase-polynomial"

    def __init__(self, max_qubits: int = 16):
        self.max_qubits = max_qubits

    def check(self, original: Circuit, new: Circuit, num_inputs: int) -> VerificationResult:
        if _uses_ancillas(original, num_inputs) or _uses_ancillas(new, num_inputs):
            return VerificationResult(Verdict.INCONCLUSIVE, "ancillas are not supported", self.name)
        n = max(num_inputs, 1)
        if n > self.max_qubits:
            return VerificationResult(Verdict.INCONCLUSIVE, f"{n} qubits is too many", self.name)
        try:
            left = extract_phase_polynomial(original, n)
            right = extract_phase_polynomial(new, n)
        except UnsupportedGateError as e:
            return VerificationResult(Verdict.INCONCLUSIVE, str(e), self.name)

        if not np.array_equal(left.linear, right.linear):
            return VerificationResult(Verdict.NOT_EQUAL, "Linear parts differ", self.name)
        if not np.array_equal(left.flips, right.flips):
            return VerificationResult(Verdict.NOT_EQUAL, "Output flips differ", self.name)

        inputs = ((np.arange(2 ** n)[:, None] >> np.arange(n)) & 1).astype(bool)
        diff = (left.evaluate(inputs) - right.evaluate(inputs)) % 8
        bad = np.flatnonzero(diff != diff[0])
        if len(bad):
            x = "".join(str(int(b)) for b in inputs[bad[0]])
            return VerificationResult(
                Verdict.NOT_EQUAL, f"Phases differ on input {x} (qubit 0 first)", self.name
            )
        return VerificationResult(Verdict.EQUAL, "Equal phase polynomials", self.name)


class UnitaryChecker(EquivalenceChecker):
    """Compares the post-selected operators of small circuits numerically."""

    name = "unitary"

    def __init__(self, max_qubits: int = 12, atol: float = 1e-8):
        self.max_qubits = min(max_qubits, MAX_SIMULATED_QUBITS)
        self.atol = atol

    def check(self, original: Circuit, new: Circuit, num_inputs: int) -> VerificationResult:
        n = max(original.num_qubits, new.num_qubits, num_inputs)
        if n > self.max_qubits:
            return VerificationResult(Verdict.INCONCLUSIVE, f"{n} qubits is too many", self.name)
        left = postselected_operator(original, num_inputs, n)
        right = postselected_operator(new, num_inputs, n)
        if proportional(right, left, self.atol):
            return VerificationResult(Verdict.EQUAL, "Equal up to scalar", self.name)
        return VerificationResult(Verdict.NOT_EQUAL, "Operators are not proportional", self.name)


class ChainChecker(EquivalenceChecker):
    """Asks each checker in turn and returns the first conclusive verdict."""

    name = "chain"

    def __init__(self, checkers: Sequence[EquivalenceChecker]):
        self.checkers: List[EquivalenceChecker] = list(checkers)

    def check(self, original: Circuit, new: Circuit, num_inputs: int) -> VerificationResult:
        reasons = []
        for checker in self.checkers:
            result = checker.check(original, new, num_inputs)
            if result.verdict is not Verdict.INCONCLUSIVE:
                return result
            logger.debug("%s inconclusive: %s", checker.name, result.detail)
            reasons.append(f"{checker.name}: {result.detail}")
        return VerificationResult(Verdict.INCONCLUSIVE, "; ".join(reasons), self.name)
