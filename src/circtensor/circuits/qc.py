# src/circtensor/circuits/qc.py
"""
The ``.qc`` circuit format read by ``feynver``.

A ``.qc`` file lists its wires (``.v``), the subset that are inputs
(``.i``; every other wire is an ancilla initialised and post-selected in
|0>), and then the gates between ``BEGIN`` and ``END``.
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from circtensor.circuits.circuit import Circuit
from circtensor.circuits.gates import Gate, GateKind
from circtensor.exceptions import CircuitParseError


# Phase p is written as these gates in order.
_PHASE_TEXT = {
    0: [],
    1: ["T"],
    2: ["S"],
    3: ["S", "T"],
    4: ["Z"],
    5: ["Z", "T"],
    6: ["Z", "S"],
    7: ["Z", "S", "T"],
}

_READERS: Dict[str, Tuple[int, Callable[[List[int]], List[Gate]]]] = {
    "T": (1, lambda a: [Gate.t(a[0])]),
    "T*": (1, lambda a: [Gate.tdg(a[0])]),
    "S": (1, lambda a: [Gate.s(a[0])]),
    "S*": (1, lambda a: [Gate.sdg(a[0])]),
    "Z": (1, lambda a: [Gate.z(a[0])]),
    "H": (1, lambda a: [Gate.h(a[0])]),
    "X": (1, lambda a: [Gate.x(a[0])]),
    "not": (1, lambda a: [Gate.x(a[0])]),
    "cz": (2, lambda a: [Gate.cz(a[0], a[1])]),
    "cnot": (2, lambda a: [Gate.cnot(a[0], a[1])]),
    "swap": (2, lambda a: [Gate.swap(a[0], a[1])]),
    "tof": (3, lambda a: [Gate.h(a[2]), Gate.ccz(a[0], a[1], a[2]), Gate.h(a[2])]),
}


def _gate_lines(gate: Gate) -> List[str]:
    q = gate.qubits
    kind = gate.kind
    if kind is GateKind.PHASE:
        return [f"{name} {q[0]}" for name in _PHASE_TEXT[gate.phase]]
    if kind is GateKind.X:
        return [f"X {q[0]}"]
    if kind is GateKind.H:
        return [f"H {q[0]}"]
    if kind is GateKind.CNOT:
        return [f"cnot {q[0]} {q[1]}"]
    if kind is GateKind.CZ:
        return [f"H {q[1]}", f"cnot {q[0]} {q[1]}", f"H {q[1]}"]
    if kind is GateKind.CS:
        a, b = q
        return [
            f"cnot {a} {b}", f"Z {b}", f"S {b}", f"T {b}",
            f"cnot {a} {b}", f"T {a}", f"T {b}",
        ]
    if kind is GateKind.CCZ:
        return [f"H {q[2]}", f"tof {q[0]} {q[1]} {q[2]}", f"H {q[2]}"]
    # SWAP
    a, b = q
    return [f"cnot {a} {b}", f"cnot {b} {a}", f"cnot {a} {b}"]


def dumps(circuit: Circuit, inputs: Optional[int] = None) -> str:
    """Render a circuit in ``.qc`` format.

    Parameters
    ----------
    circuit : Circuit
        Circuit to write.
    inputs : int, optional
        Number of leading qubits that are inputs. Any further qubit is an
        ancilla. Defaults to the whole register.
    """
    wires = max(circuit.num_qubits, 1)
    inputs = wires if inputs is None else inputs
    body = [line for g in circuit for line in _gate_lines(g)]
    return "\n".join([
        ".v " + " ".join(str(i) for i in range(wires)),
        ".i " + " ".join(str(i) for i in range(inputs)),
        "BEGIN",
        *body,
        "END",
    ]) + "\n"


def loads(text: str) -> Circuit:
    """Parse ``.qc`` source. Wire labels are numbered in ``.v`` order."""
    labels: Dict[str, int] = {}
    circuit = Circuit()
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(("#", "BEGIN", "END", ".i", ".o")):
            continue
        if line.startswith(".v"):
            for label in line[2:].split():
                labels.setdefault(label, len(labels))
            continue

        name, *args = line.split()
        if name not in _READERS:
            raise CircuitParseError(f"unknown gate name {name!r} in {line!r}")
        arity, build = _READERS[name]
        if len(args) != arity:
            raise CircuitParseError(
                f"gate {name!r} expects {arity} argument(s), got {len(args)} in {line!r}"
            )
        try:
            qubits = [labels[a] for a in args]
        except KeyError as e:
            raise CircuitParseError(f"unexpected qubit label {e.args[0]!r} in {line!r}") from e
        circuit.extend(build(qubits))

    circuit.num_qubits = max(circuit.num_qubits, len(labels))
    return circuit


def load(path: Union[str, Path]) -> Circuit:
    try:
        text = Path(path).read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise CircuitParseError(f"cannot read {path}: {e}") from e
    return loads(text)


def dump(circuit: Circuit, path: Union[str, Path], inputs: Optional[int] = None) -> Path:
    path = Path(path)
    path.write_text(dumps(circuit, inputs))
    return path
