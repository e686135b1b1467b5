# src/circtensor/phasepoly/extractor.py
"""
Phase-polynomial extraction for CNOT+phase circuits.

A circuit built from CNOT, SWAP, X and diagonal gates acts as

    |x>  ->  omega^{f(x)} |L x + c>,      f(x) = sum_i phi_i * (a_i . x)

with ``omega = exp(i pi / 4)``. The extractor walks the gates once while
tracking the affine parity held by every wire, and records each diagonal
gate as phases on those parities.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from circtensor.circuits import Circuit, Gate, GateKind, normalize_phase
from circtensor.exceptions import UnsupportedGateError

logger = logging.getLogger(__name__)


@dataclass
class PhasePolynomial:
    """Phase polynomial of a CNOT+phase fragment.

    Attributes
    ----------
    parities : np.ndarray
        Boolean array of shape ``(m, n)``; row ``i`` is the parity ``a_i``.
        Rows are nonzero and pairwise distinct, in order of first appearance.
    phases : np.ndarray
        Integer array of shape ``(m,)`` with entries in ``1..7``.
    linear : np.ndarray
        Boolean array of shape ``(n, n)``; row ``q`` is the parity on wire
        ``q`` at the end of the fragment.
    flips : np.ndarray
        Boolean array of shape ``(n,)``; the affine constant ``c``.
    """
    parities: np.ndarray
    phases: np.ndarray
    linear: np.ndarray
    flips: np.ndarray

    @property
    def num_qubits(self) -> int:
        return self.linear.shape[0]

    @property
    def num_terms(self) -> int:
        return self.parities.shape[0]

    def t_parities(self) -> np.ndarray:
        """Parities carrying an odd phase, each needing exactly one T."""
        return self.parities[self.phases % 2 == 1]

    def clifford_remainder(self) -> List[Tuple[np.ndarray, int]]:
        """``(parity, phase)`` left once every odd phase gives up one T."""
        out = []
        for parity, phase in zip(self.parities, self.phases):
            rest = int(phase) - (int(phase) % 2)
            if rest:
                out.append((parity, rest))
        return out

    def evaluate(self, inputs: np.ndarray) -> np.ndarray:
        """``f(x) mod 8`` for each row ``x`` of a boolean ``(k, n)`` array."""
        values = (inputs.astype(np.int64) @ self.parities.T.astype(np.int64)) % 2
        return (values @ self.phases.astype(np.int64)) % 8


class _Accumulator:
    """Merges phases on identical parities while keeping first-seen order."""

    def __init__(self, n: int):
        self.n = n
        self.index: Dict[bytes, int] = {}
        self.rows: List[np.ndarray] = []
        self.phases: List[int] = []

    def add(self, parity: np.ndarray, constant: bool, phase: int) -> None:
        # omega^{p (1 - a.x)} = omega^p * omega^{-p a.x}; the global factor is dropped
        if constant:
            phase = -phase
        if not parity.any():
            return
        key = parity.tobytes()
        if key not in self.index:
            self.index[key] = len(self.rows)
            self.rows.append(parity.copy())
            self.phases.append(0)
        i = self.index[key]
        self.phases[i] = normalize_phase(self.phases[i] + phase)

    def result(self) -> Tuple[np.ndarray, np.ndarray]:
        keep = [i for i, p in enumerate(self.phases) if p]
        if not keep:
            return np.zeros((0, self.n), dtype=bool), np.zeros(0, dtype=np.int64)
        parities = np.array([self.rows[i] for i in keep], dtype=bool)
        phases = np.array([self.phases[i] for i in keep], dtype=np.int64)
        return parities, phases


def extract_phase_polynomial(
    circuit: Circuit,
    num_qubits: Optional[int] = None,
) -> PhasePolynomial:
    """Extract the phase polynomial of a CNOT+phase circuit.

    Parameters
    ----------
    circuit : Circuit
        Circuit made of X, CNOT, SWAP, phase, CZ, CS and CCZ gates.
    num_qubits : int, optional
        Number of wires; defaults to the circuit's register size.

    Returns
    -------
    PhasePolynomial

    Raises
    ------
    UnsupportedGateError
        On a Hadamard, which has no phase-polynomial form.
    """
    n = max(circuit.num_qubits, num_qubits or 0)
    wires = np.eye(n, dtype=bool)
    consts = np.zeros(n, dtype=bool)
    acc = _Accumulator(n)

    def add(qs: Tuple[int, ...], phase: int) -> None:
        parity = np.zeros(n, dtype=bool)
        constant = False
        for q in qs:
            parity ^= wires[q]
            constant ^= bool(consts[q])
        acc.add(parity, constant, phase)

    for gate in circuit:
        kind = gate.kind
        qs = gate.qubits
        if kind is GateKind.X:
            consts[qs[0]] ^= True
        elif kind is GateKind.CNOT:
            c, t = qs
            wires[t] ^= wires[c]
            consts[t] ^= consts[c]
        elif kind is GateKind.SWAP:
            a, b = qs
            wires[[a, b]] = wires[[b, a]]
            consts[[a, b]] = consts[[b, a]]
        elif kind is GateKind.PHASE:
            add(qs, gate.phase)
        elif kind is GateKind.CZ:
            # 4ab = 2a + 2b - 2(a^b)
            a, b = qs
            add((a,), 2)
            add((b,), 2)
            add((a, b), 6)
        elif kind is GateKind.CS:
            # 2ab = a + b - (a^b)
            a, b = qs
            add((a,), 1)
            add((b,), 1)
            add((a, b), 7)
        elif kind is GateKind.CCZ:
            # 4abc = a + b + c - (a^b) - (a^c) - (b^c) + (a^b^c)
            a, b, c = qs
            add((a,), 1)
            add((b,), 1)
            add((c,), 1)
            add((a, b), 7)
            add((a, c), 7)
            add((b, c), 7)
            add((a, b, c), 1)
        else:
            raise UnsupportedGateError(gate, "phase-polynomial extraction")

    parities, phases = acc.result()
    logger.debug("Extracted %d phase terms over %d qubits", len(phases), n)
    return PhasePolynomial(parities=parities, phases=phases, linear=wires, flips=consts)
