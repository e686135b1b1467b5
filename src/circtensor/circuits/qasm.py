# src/circtensor/circuits/qasm.py
"""
OpenQASM 2 input and output.

Input goes through :func:`qiskit.qasm2.loads`. Gates defined inside the
program are expanded through their definitions, except ``ccz``, ``cs`` and
``swap`` which map onto native gate kinds. Output only uses ``qelib1.inc``
gates plus ``ccz``/``cs`` definitions emitted in the header when needed.
"""
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import List, Sequence, Union

from qiskit import qasm2
from qiskit.circuit import QuantumCircuit

from circtensor.circuits.circuit import Circuit
from circtensor.circuits.gates import Gate, GateKind
from circtensor.exceptions import CircuitParseError, UnsupportedGateError

logger = logging.getLogger(__name__)


_PHASE_GATES = {"t": 1, "s": 2, "z": 4, "sdg": 6, "tdg": 7}
_ROTATIONS = ("rz", "p", "u1")
_IGNORED = ("barrier", "id")

CCZ_DEFINITION = "gate ccz a, b, c { h c; ccx a, b, c; h c; }"
CS_DEFINITION = "gate cs a, b { cx a, b; tdg b; cx a, b; t a; t b; }"

# Phase p is written as these gates in order.
_PHASE_TEXT = {
    0: [],
    1: ["t"],
    2: ["s"],
    3: ["s", "t"],
    4: ["z"],
    5: ["z", "t"],
    6: ["sdg"],
    7: ["tdg"],
}


# =============================================================================
# Reading
# =============================================================================

def _angle_to_phase(name: str, angle: float) -> int:
    ratio = float(angle) / (math.pi / 4)
    k = round(ratio)
    if abs(ratio - k) > 1e-9:
        raise UnsupportedGateError(f"{name}({angle})", "OpenQASM input")
    return k % 8


def _convert(qc: QuantumCircuit, wires: Sequence[int], out: Circuit) -> None:
    for instruction in qc.data:
        op = instruction.operation
        name = op.name
        qs = [wires[qc.find_bit(q).index] for q in instruction.qubits]

        if name in _IGNORED:
            continue
        if instruction.clbits:
            raise UnsupportedGateError(name, "OpenQASM input")

        if name == "x":
            out.append(Gate.x(qs[0]))
        elif name == "h":
            out.append(Gate.h(qs[0]))
        elif name == "cx":
            out.append(Gate.cnot(qs[0], qs[1]))
        elif name == "cz":
            out.append(Gate.cz(qs[0], qs[1]))
        elif name == "cs":
            out.append(Gate.cs(qs[0], qs[1]))
        elif name == "swap":
            out.append(Gate.swap(qs[0], qs[1]))
        elif name == "ccz":
            out.append(Gate.ccz(qs[0], qs[1], qs[2]))
        elif name == "ccx":
            out.append(Gate.h(qs[2]))
            out.append(Gate.ccz(qs[0], qs[1], qs[2]))
            out.append(Gate.h(qs[2]))
        elif name in _PHASE_GATES:
            out.append(Gate.phase_gate(_PHASE_GATES[name], qs[0]))
        elif name in _ROTATIONS:
            phase = _angle_to_phase(name, op.params[0])
            if phase:
                out.append(Gate.phase_gate(phase, qs[0]))
        elif op.definition is not None:
            logger.debug("Expanding gate %s through its definition", name)
            _convert(op.definition, qs, out)
        else:
            raise UnsupportedGateError(name, "OpenQASM input")


def loads(text: str) -> Circuit:
    """Parse an OpenQASM 2 program.

    Raises
    ------
    CircuitParseError
        If the program is not valid OpenQASM 2.
    UnsupportedGateError
        If the program uses a gate outside the Clifford+T gate set.
    """
    try:
        qc = qasm2.loads(text)
    except qasm2.QASM2ParseError as e:
        raise CircuitParseError(str(e)) from e

    circuit = Circuit(num_qubits=qc.num_qubits)
    _convert(qc, list(range(qc.num_qubits)), circuit)
    return circuit


def load(path: Union[str, Path]) -> Circuit:
    try:
        text = Path(path).read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise CircuitParseError(f"cannot read {path}: {e}") from e
    return loads(text)


# =============================================================================
# Writing
# =============================================================================

def _gate_lines(gate: Gate, definitions: bool) -> List[str]:
    q = [f"q[{i}]" for i in gate.qubits]
    kind = gate.kind
    if kind is GateKind.PHASE:
        return [f"{name} {q[0]};" for name in _PHASE_TEXT[gate.phase]]
    if kind is GateKind.X:
        return [f"x {q[0]};"]
    if kind is GateKind.H:
        return [f"h {q[0]};"]
    if kind is GateKind.CNOT:
        return [f"cx {q[0]}, {q[1]};"]
    if kind is GateKind.CZ:
        return [f"cz {q[0]}, {q[1]};"]
    if kind is GateKind.CS:
        if not definitions:
            a, b = q
            return [f"cx {a}, {b};", f"tdg {b};", f"cx {a}, {b};", f"t {a};", f"t {b};"]
        return [f"cs {q[0]}, {q[1]};"]
    if kind is GateKind.CCZ:
        return [f"ccz {q[0]}, {q[1]}, {q[2]};"]
    # SWAP
    return [
        f"cx {q[0]}, {q[1]};",
        f"cx {q[1]}, {q[0]};",
        f"cx {q[0]}, {q[1]};",
    ]


def dumps(circuit: Circuit, definitions: bool = True) -> str:
    """Render a circuit as an OpenQASM 2 program.

    With ``definitions`` off, no gate definitions are emitted: CS is written
    out inline and CCZ is left as a bare ``ccz``, which tools with a built-in
    ``ccz`` (such as pyzx) accept.
    """
    kinds = {g.kind for g in circuit}
    lines = ["OPENQASM 2.0;", 'include "qelib1.inc";']
    if definitions and GateKind.CCZ in kinds:
        lines.append(CCZ_DEFINITION)
    if definitions and GateKind.CS in kinds:
        lines.append(CS_DEFINITION)
    lines.append(f"qreg q[{max(circuit.num_qubits, 1)}];")
    for gate in circuit:
        lines.extend(_gate_lines(gate, definitions))
    return "\n".join(lines) + "\n"


def dump(circuit: Circuit, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.write_text(dumps(circuit))
    return path
