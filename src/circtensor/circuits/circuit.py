# src/circtensor/circuits/circuit.py
"""
Ordered gate lists over a qubit register.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Iterable,
    Iterator,
    List,
    Set,
)

import stim

from circtensor.circuits.gates import Gate, GateKind, max_qubit
from circtensor.exceptions import UnsupportedGateError


_STIM_NAMES = {
    GateKind.X: "X",
    GateKind.H: "H",
    GateKind.CNOT: "CX",
    GateKind.CZ: "CZ",
    GateKind.SWAP: "SWAP",
}

_STIM_PHASES = {2: "S", 4: "Z", 6: "S_DAG"}


@dataclass
class Circuit:
    """A quantum circuit as an ordered list of gates.

    Attributes
    ----------
    gates : List[Gate]
        Gates in execution order.
    num_qubits : int
        Size of the qubit register. Every qubit index used by a gate is
        below this size; appending a gate on a new qubit grows it.
    """
    gates: List[Gate] = field(default_factory=list)
    num_qubits: int = 0

    def __post_init__(self) -> None:
        self.gates = list(self.gates)
        used = max_qubit(self.gates) + 1
        if self.num_qubits and used > self.num_qubits:
            raise ValueError(
                f"gate on qubit {used - 1} outside register of size {self.num_qubits}"
            )
        self.num_qubits = max(self.num_qubits, used)

    def __len__(self) -> int:
        return len(self.gates)

    def __iter__(self) -> Iterator[Gate]:
        return iter(self.gates)

    def __str__(self) -> str:
        return " ".join(str(g) for g in self.gates)

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def append(self, gate: Gate) -> None:
        self.gates.append(gate)
        self.num_qubits = max(self.num_qubits, max(gate.qubits) + 1)

    def extend(self, gates: Iterable[Gate]) -> None:
        for gate in gates:
            self.append(gate)

    def merge(self, other: "Circuit") -> "Circuit":
        """Append all gates of ``other`` in place and return ``self``."""
        self.extend(other.gates)
        self.num_qubits = max(self.num_qubits, other.num_qubits)
        return self

    def prepend(self, other: "Circuit") -> None:
        """Insert all gates of ``other`` before the gates of this circuit."""
        self.gates[:0] = other.gates
        self.num_qubits = max(self.num_qubits, other.num_qubits)

    def copy(self) -> "Circuit":
        return Circuit(list(self.gates), self.num_qubits)

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def count(self, kind: GateKind) -> int:
        return sum(1 for g in self.gates if g.kind is kind)

    def hadamard_count(self) -> int:
        """Count all Hadamards, including those not obstructing anything."""
        return self.count(GateKind.H)

    def tcount(self) -> int:
        """Number of non-Clifford phase gates."""
        return sum(
            1 for g in self.gates if g.kind is GateKind.PHASE and not g.is_clifford
        )

    def weighted_tcount(self) -> int:
        """T-count with CCZ counted as 7 and CS as 3."""
        return (
            self.tcount()
            + 7 * self.count(GateKind.CCZ)
            + 3 * self.count(GateKind.CS)
        )

    def is_clifford(self) -> bool:
        return all(g.is_clifford for g in self.gates)

    def qubits_used(self) -> Set[int]:
        return {q for g in self.gates for q in g.qubits}

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def to_stim(self) -> stim.Circuit:
        """Convert a Clifford circuit to a :class:`stim.Circuit`.

        The result always spans ``num_qubits`` qubits so that tableaux of
        circuits over the same register have the same size.

        Raises
        ------
        UnsupportedGateError
            If the circuit contains a non-Clifford gate.
        """
        out = stim.Circuit()
        for g in self.gates:
            if g.kind is GateKind.PHASE:
                if g.phase == 0:
                    continue
                if g.phase not in _STIM_PHASES:
                    raise UnsupportedGateError(g, "stim conversion")
                out.append(_STIM_PHASES[g.phase], list(g.qubits))
            elif g.kind in _STIM_NAMES:
                out.append(_STIM_NAMES[g.kind], list(g.qubits))
            else:
                raise UnsupportedGateError(g, "stim conversion")
        if self.num_qubits:
            out.append("I", [self.num_qubits - 1])
        return out
