# src/circtensor/compiler/__init__.py
"""
Compile pipeline and resynthesizer.

Usage
-----
>>> from circtensor.compiler import CompileConfig, RunContext, compile_circuit
>>> compiled = compile_circuit(circuit, CompileConfig(ancilla=4), RunContext(seed=1))
>>> for block in compiled.non_clifford_blocks():
...     print(block.mapping, block.tensor.tensor.shape)

>>> from circtensor.compiler import resynthesize
>>> result = resynthesize(new_matrix, mapping=[0, 2, 3], original=old_matrix)
"""

from .context import CompileConfig, ResynthConfig, RunContext
from .stats import (
    BlockStats,
    CompileFileStats,
    HCountStats,
    ResynthFileStats,
    TCountStats,
)
from .partition import (
    PartitionedCircuit,
    extract_cliffords,
    partition,
    pull_gates,
    to_cnot_phase,
)
from .hadamard import (
    AncillaAllocator,
    SplitCandidate,
    gadgetize_hadamards,
    interior_hadamard_count,
    run_trial,
    search_splits,
    split_budget,
)
from .pipeline import (
    CliffordBlock,
    CompiledCircuit,
    NonCliffordBlock,
    compile_circuit,
    compile_file,
    load_circuit,
)
from .resynth import ResynthesisResult, resynthesize, validate_mapping

__all__ = [
    "CompileConfig",
    "ResynthConfig",
    "RunContext",
    "BlockStats",
    "CompileFileStats",
    "HCountStats",
    "ResynthFileStats",
    "TCountStats",
    "PartitionedCircuit",
    "extract_cliffords",
    "partition",
    "pull_gates",
    "to_cnot_phase",
    "AncillaAllocator",
    "SplitCandidate",
    "gadgetize_hadamards",
    "interior_hadamard_count",
    "run_trial",
    "search_splits",
    "split_budget",
    "CliffordBlock",
    "CompiledCircuit",
    "NonCliffordBlock",
    "compile_circuit",
    "compile_file",
    "load_circuit",
    "ResynthesisResult",
    "resynthesize",
    "validate_mapping",
]
