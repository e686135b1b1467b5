# src/circtensor/__init__.py
"""
circtensor: Clifford+T circuits to signature tensors and back.

Usage
-----
>>> from circtensor.circuits import qasm
>>> from circtensor.compiler import compile_circuit, resynthesize
>>> compiled = compile_circuit(qasm.load("adder.qasm"))
>>> block = compiled.non_clifford_blocks()[0]
>>> result = resynthesize(block.matrix, block.mapping, original=block.matrix)

Subpackages
-----------
- circuits: gate/circuit model, OpenQASM and .qc formats, dense simulator
- phasepoly: phase polynomials, signature tensors, decompositions, synthesis
- compiler: block splitting, Hadamard gadgets, compile pipeline, resynthesis
- collaborators: pre-optimizers, Hadamard minimizers, equivalence checkers
- io: tensor/matrix/mapping files and run logs
- testing: random circuit generators and equivalence assertions
"""

__version__ = "0.1.0"

from .exceptions import (
    CircuitTensorError,
    CircuitParseError,
    UnsupportedGateError,
    CapacityExceededError,
    TensorMismatchError,
    MalformedDecompositionError,
    MappingMismatchError,
    CompilationAbortedError,
    ExternalToolError,
)

__all__ = [
    "__version__",
    "CircuitTensorError",
    "CircuitParseError",
    "UnsupportedGateError",
    "CapacityExceededError",
    "TensorMismatchError",
    "MalformedDecompositionError",
    "MappingMismatchError",
    "CompilationAbortedError",
    "ExternalToolError",
]
