# src/circtensor/compiler/partition.py
"""
Splitting circuits into Clifford and non-Clifford blocks.

A circuit is cut into a front Clifford block, a list of blocks alternating
between Hadamard-free blocks (even positions) and Clifford blocks (odd
positions), and a back Clifford block. Concatenating them in order gives the
original circuit back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Set, Tuple

from circtensor.circuits import Circuit, Gate, GateKind
from circtensor.exceptions import UnsupportedGateError

logger = logging.getLogger(__name__)


def pull_gates(circuit: Circuit, predicate: Callable[[Gate], bool]) -> Circuit:
    """Remove and return the gates that can be moved to the front of ``circuit``.

    A gate is pulled when it satisfies ``predicate`` and no earlier gate
    left in the circuit shares a qubit with it.
    """
    pulled: List[Gate] = []
    kept: List[Gate] = []
    blocked: Set[int] = set()
    for gate in circuit.gates:
        if predicate(gate) and blocked.isdisjoint(gate.qubits):
            pulled.append(gate)
        else:
            kept.append(gate)
            blocked.update(gate.qubits)
    circuit.gates = kept
    return Circuit(pulled, circuit.num_qubits)


def extract_cliffords(circuit: Circuit) -> Tuple[Circuit, Circuit]:
    """Remove the Clifford gates at the front and back of ``circuit``."""
    front = pull_gates(circuit, lambda g: g.is_clifford)
    circuit.gates.reverse()
    back = pull_gates(circuit, lambda g: g.is_clifford)
    back.gates.reverse()
    circuit.gates.reverse()
    return front, back


@dataclass
class PartitionedCircuit:
    """A circuit cut into blocks.

    Attributes
    ----------
    front : Circuit
        Leading Clifford gates.
    blocks : List[Circuit]
        Alternating blocks; even positions hold the non-Clifford blocks and
        odd positions the Clifford blocks between them.
    back : Circuit
        Trailing Clifford gates.
    """
    front: Circuit = field(default_factory=Circuit)
    blocks: List[Circuit] = field(default_factory=list)
    back: Circuit = field(default_factory=Circuit)

    @property
    def num_qubits(self) -> int:
        return max(c.num_qubits for c in [self.front, self.back, *self.blocks])

    def merge(self) -> Circuit:
        """Concatenate every block back into a single circuit."""
        circuit = Circuit(num_qubits=self.num_qubits)
        circuit.merge(self.front)
        for block in self.blocks:
            circuit.merge(block)
        circuit.merge(self.back)
        return circuit

    def hadamard_counts(self) -> List[int]:
        return [block.hadamard_count() for block in self.blocks]

    def merge_spans(self, spans: Sequence[Tuple[int, int]]) -> None:
        """Replace the blocks by concatenations ``blocks[a:b]`` for each span."""
        merged = []
        for a, b in spans:
            block = Circuit(num_qubits=self.num_qubits)
            for i in range(a, b):
                block.merge(self.blocks[i])
            merged.append(block)
        self.blocks = merged

    def clifford_after(self, i: int) -> Circuit:
        """The Clifford block that follows block ``i``."""
        return self.back if i == len(self.blocks) - 1 else self.blocks[i + 1]

    def layout(self) -> List[Circuit]:
        """``[front, *blocks, back]``; odd positions are non-Clifford."""
        return [self.front, *self.blocks, self.back]


def partition(circuit: Circuit) -> PartitionedCircuit:
    """Split ``circuit`` into alternating Hadamard-free and Clifford blocks."""
    remaining = circuit.copy()
    front, back = extract_cliffords(remaining)

    blocks: List[Circuit] = []
    while remaining.gates:
        blocks.append(pull_gates(remaining, lambda g: not g.is_hadamard))
        if not remaining.gates:
            break
        blocks.append(pull_gates(remaining, lambda g: g.is_clifford))

    logger.debug(
        "Partitioned %d gates into %d blocks (front %d, back %d)",
        len(circuit), len(blocks), len(front), len(back),
    )
    return PartitionedCircuit(front=front, blocks=blocks, back=back)


# =============================================================================
# CNOT+phase normal form
# =============================================================================

def _expand(gate: Gate) -> List[Gate]:
    kind = gate.kind
    if kind is GateKind.CZ:
        a, b = gate.qubits
        return [Gate.sdg(a), Gate.sdg(b), Gate.cnot(a, b), Gate.s(b), Gate.cnot(a, b)]
    if kind is GateKind.CS:
        a, b = gate.qubits
        return [Gate.cnot(a, b), Gate.tdg(b), Gate.cnot(a, b), Gate.t(a), Gate.t(b)]
    if kind is GateKind.CCZ:
        a, b, c = gate.qubits
        return [
            Gate.cnot(b, c), Gate.tdg(c),
            Gate.cnot(a, c), Gate.t(c),
            Gate.cnot(b, c), Gate.tdg(c),
            Gate.cnot(a, c), Gate.t(c),
            Gate.t(b),
            Gate.cnot(a, b), Gate.t(a), Gate.tdg(b), Gate.cnot(a, b),
        ]
    if kind is GateKind.SWAP:
        a, b = gate.qubits
        return [Gate.cnot(a, b), Gate.cnot(b, a), Gate.cnot(a, b)]
    if kind is GateKind.H:
        raise UnsupportedGateError(gate, "CNOT+phase conversion")
    return [gate]


def to_cnot_phase(block: Circuit) -> Circuit:
    """Rewrite a Hadamard-free block into CNOT and phase gates only.

    CZ, CS, CCZ and SWAP are expanded and every X gate is commuted to the end
    of the block: through a CNOT it spreads from control to target, and a
    phase gate it passes is negated (up to global phase). The block is
    modified in place.

    Returns
    -------
    Circuit
        The X gates removed from the block, to be applied right after it.
    """
    flipped: Set[int] = set()
    gates: List[Gate] = []
    for gate in (g for original in block.gates for g in _expand(original)):
        if gate.kind is GateKind.X:
            flipped ^= {gate.qubits[0]}
        elif gate.kind is GateKind.CNOT:
            c, t = gate.qubits
            if c in flipped:
                flipped ^= {t}
            gates.append(gate)
        elif gate.kind is GateKind.PHASE and gate.qubits[0] in flipped:
            gates.append(Gate.phase_gate(-gate.phase, gate.qubits[0]))
        else:
            gates.append(gate)
    block.gates = gates
    return Circuit([Gate.x(q) for q in sorted(flipped)], block.num_qubits)
