# src/circtensor/circuits/gates.py
"""
Gate model for Clifford+T circuits.

Gates are immutable values. Phases are integers modulo 8 in units of pi/4,
so ``T = 1``, ``S = 2``, ``Z = 4``, ``S† = 6`` and ``T† = 7``. A Toffoli is
not a gate kind of its own: it is stored as ``H(t) CCZ(a, b, t) H(t)``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import (
    Callable,
    Dict,
    Iterable,
    Tuple,
)


# =============================================================================
# Phases
# =============================================================================

PHASE_T = 1
PHASE_S = 2
PHASE_Z = 4
PHASE_SDG = 6
PHASE_TDG = 7


def normalize_phase(phase: int) -> int:
    """Reduce a phase to its representative in ``0..7``."""
    return int(phase) % 8


def is_clifford_phase(phase: int) -> bool:
    """Even multiples of pi/4 are Clifford."""
    return normalize_phase(phase) % 2 == 0


# =============================================================================
# Gates
# =============================================================================

class GateKind(Enum):
    """Kinds of gates understood by the compiler."""
    X = auto()
    CNOT = auto()
    PHASE = auto()
    CZ = auto()
    CS = auto()
    CCZ = auto()
    SWAP = auto()
    H = auto()


GATE_ARITY: Dict[GateKind, int] = {
    GateKind.X: 1,
    GateKind.CNOT: 2,
    GateKind.PHASE: 1,
    GateKind.CZ: 2,
    GateKind.CS: 2,
    GateKind.CCZ: 3,
    GateKind.SWAP: 2,
    GateKind.H: 1,
}

_PHASE_NAMES = {
    0: "I", 1: "T", 2: "S", 3: "ST", 4: "Z", 5: "ZT", 6: "Sdg", 7: "Tdg",
}


@dataclass(frozen=True)
class Gate:
    """A single gate.

    Attributes
    ----------
    kind : GateKind
        What the gate does.
    qubits : Tuple[int, ...]
        Qubits acted on. For CNOT the order is ``(control, target)``.
    phase : int
        Phase in units of pi/4, only meaningful for ``GateKind.PHASE``.
    """
    kind: GateKind
    qubits: Tuple[int, ...]
    phase: int = 0

    def __post_init__(self) -> None:
        qubits = tuple(int(q) for q in self.qubits)
        if len(qubits) != GATE_ARITY[self.kind]:
            raise ValueError(
                f"{self.kind.name} acts on {GATE_ARITY[self.kind]} qubit(s), "
                f"got {len(qubits)}"
            )
        if len(set(qubits)) != len(qubits):
            raise ValueError(f"{self.kind.name} qubits must be distinct: {qubits}")
        if any(q < 0 for q in qubits):
            raise ValueError(f"qubit indices must be non-negative: {qubits}")
        object.__setattr__(self, "qubits", qubits)
        phase = normalize_phase(self.phase) if self.kind is GateKind.PHASE else 0
        object.__setattr__(self, "phase", phase)

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def x(cls, q: int) -> "Gate":
        return cls(GateKind.X, (q,))

    @classmethod
    def h(cls, q: int) -> "Gate":
        return cls(GateKind.H, (q,))

    @classmethod
    def cnot(cls, control: int, target: int) -> "Gate":
        return cls(GateKind.CNOT, (control, target))

    @classmethod
    def cz(cls, a: int, b: int) -> "Gate":
        return cls(GateKind.CZ, (a, b))

    @classmethod
    def cs(cls, a: int, b: int) -> "Gate":
        return cls(GateKind.CS, (a, b))

    @classmethod
    def ccz(cls, a: int, b: int, c: int) -> "Gate":
        return cls(GateKind.CCZ, (a, b, c))

    @classmethod
    def swap(cls, a: int, b: int) -> "Gate":
        return cls(GateKind.SWAP, (a, b))

    @classmethod
    def phase_gate(cls, phase: int, q: int) -> "Gate":
        return cls(GateKind.PHASE, (q,), phase)

    @classmethod
    def t(cls, q: int) -> "Gate":
        return cls.phase_gate(PHASE_T, q)

    @classmethod
    def tdg(cls, q: int) -> "Gate":
        return cls.phase_gate(PHASE_TDG, q)

    @classmethod
    def s(cls, q: int) -> "Gate":
        return cls.phase_gate(PHASE_S, q)

    @classmethod
    def sdg(cls, q: int) -> "Gate":
        return cls.phase_gate(PHASE_SDG, q)

    @classmethod
    def z(cls, q: int) -> "Gate":
        return cls.phase_gate(PHASE_Z, q)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def is_clifford(self) -> bool:
        if self.kind is GateKind.PHASE:
            return is_clifford_phase(self.phase)
        return self.kind not in (GateKind.CS, GateKind.CCZ)

    @property
    def is_hadamard(self) -> bool:
        return self.kind is GateKind.H

    def map_qubits(self, f: Callable[[int], int]) -> "Gate":
        """Return the same gate acting on ``f(q)`` for each qubit ``q``."""
        return Gate(self.kind, tuple(f(q) for q in self.qubits), self.phase)

    def __str__(self) -> str:
        args = ", ".join(str(q) for q in self.qubits)
        if self.kind is GateKind.PHASE:
            return f"{_PHASE_NAMES[self.phase]}({args})"
        return f"{self.kind.name}({args})"


def max_qubit(gates: Iterable[Gate]) -> int:
    """Largest qubit index used by ``gates``, or -1 when there are none."""
    return max((q for g in gates for q in g.qubits), default=-1)
