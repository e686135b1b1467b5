# src/circtensor/circuits/simulate.py
"""
Dense operators of small circuits through ``qiskit.quantum_info``.

Qubit ``q`` is bit ``q`` of a basis-state index (little endian, as in
qiskit). Ancillas are the qubits at and above ``num_inputs``; they start in
|0> and the post-selected operator keeps only the rows where they end in |0>.
"""
from __future__ import annotations

from typing import Optional

import numpy as np
from qiskit.circuit import QuantumCircuit
from qiskit.quantum_info import Operator

from circtensor.circuits.circuit import Circuit
from circtensor.circuits.gates import GateKind

MAX_SIMULATED_QUBITS = 14

OMEGA = np.exp(1j * np.pi / 4)


def to_qiskit(circuit: Circuit, num_qubits: Optional[int] = None) -> QuantumCircuit:
    """Build the equivalent qiskit circuit on ``num_qubits`` wires."""
    n = max(circuit.num_qubits, num_qubits or 0, 1)
    qc = QuantumCircuit(n)
    for gate in circuit:
        qs = gate.qubits
        kind = gate.kind
        if kind is GateKind.X:
            qc.x(qs[0])
        elif kind is GateKind.H:
            qc.h(qs[0])
        elif kind is GateKind.CNOT:
            qc.cx(qs[0], qs[1])
        elif kind is GateKind.PHASE:
            if gate.phase:
                qc.p(gate.phase * np.pi / 4, qs[0])
        elif kind is GateKind.CZ:
            qc.cz(qs[0], qs[1])
        elif kind is GateKind.CS:
            qc.cs(qs[0], qs[1])
        elif kind is GateKind.CCZ:
            qc.ccz(qs[0], qs[1], qs[2])
        else:
            qc.swap(qs[0], qs[1])
    return qc


def unitary(circuit: Circuit, num_qubits: Optional[int] = None) -> np.ndarray:
    """Full unitary of the circuit on ``num_qubits`` wires.

    Raises
    ------
    ValueError
        If the register is wider than ``MAX_SIMULATED_QUBITS``.
    """
    n = max(circuit.num_qubits, num_qubits or 0, 1)
    if n > MAX_SIMULATED_QUBITS:
        raise ValueError(f"refusing to simulate {n} qubits (limit {MAX_SIMULATED_QUBITS})")
    return Operator(to_qiskit(circuit, n)).data


def postselected_operator(
    circuit: Circuit,
    num_inputs: int,
    num_qubits: Optional[int] = None,
) -> np.ndarray:
    """Square operator on the inputs with ancillas prepared and post-selected in |0>."""
    dim = 2 ** num_inputs
    return unitary(circuit, max(num_qubits or 0, num_inputs))[:dim, :dim]


def proportional(a: np.ndarray, b: np.ndarray, atol: float = 1e-8) -> bool:
    """Whether ``a == c * b`` for some nonzero scalar ``c``."""
    if a.shape != b.shape:
        return False
    pivot = np.unravel_index(np.argmax(np.abs(b)), b.shape)
    if abs(b[pivot]) < atol:
        return False
    c = a[pivot] / b[pivot]
    if abs(c) < atol:
        return False
    return bool(np.allclose(a, c * b, atol=atol))
