# src/circtensor/circuits/__init__.py
"""
Circuit model and circuit file formats.

Usage
-----
>>> from circtensor.circuits import Circuit, Gate
>>> from circtensor.circuits import qasm
>>> circuit = Circuit([Gate.t(0), Gate.cnot(0, 1), Gate.t(1)])
>>> text = qasm.dumps(circuit)
"""

from .gates import (
    Gate,
    GateKind,
    GATE_ARITY,
    PHASE_T,
    PHASE_S,
    PHASE_Z,
    PHASE_SDG,
    PHASE_TDG,
    normalize_phase,
    is_clifford_phase,
    max_qubit,
)
from .circuit import Circuit
from . import qasm
from . import qc
from . import simulate

__all__ = [
    "Gate",
    "GateKind",
    "GATE_ARITY",
    "PHASE_T",
    "PHASE_S",
    "PHASE_Z",
    "PHASE_SDG",
    "PHASE_TDG",
    "normalize_phase",
    "is_clifford_phase",
    "max_qubit",
    "Circuit",
    "qasm",
    "qc",
    "simulate",
]
