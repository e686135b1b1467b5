# src/circtensor/compiler/pipeline.py
"""
Compile pipeline: circuit -> alternating blocks + signature tensors.

Stages, in order:

1. optional pre-optimizer (``RunContext.preoptimizer`` or pyzx)
2. optional Hadamard minimizer (``RunContext.hadamard_minimizer``)
3. split into blocks and search which blocks to merge
4. replace interior Hadamards of non-Clifford blocks with ancilla gadgets
5. extract each non-Clifford block's phase polynomial and tensor; the block
   keeps one T gadget per term and its Clifford remainder moves into the
   following Clifford block

With verification on, the context's checker compares the input with the
circuit after stages 1, 2, 4 and 5.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np

from circtensor.circuits import Circuit, GateKind, qasm, qc
from circtensor.collaborators.base import VerificationResult, Verdict
from circtensor.collaborators.zx import PyZXPreoptimizer
from circtensor.compiler.context import CompileConfig, RunContext
from circtensor.compiler.hadamard import (
    AncillaAllocator,
    gadgetize_hadamards,
    interior_hadamard_count,
    search_splits,
    split_budget,
)
from circtensor.compiler.partition import PartitionedCircuit, partition, to_cnot_phase
from circtensor.compiler.stats import BlockStats, CompileFileStats
from circtensor.exceptions import UnsupportedGateError
from circtensor.phasepoly import (
    BlockTensor,
    PhasePolynomial,
    build_block_tensor,
    extract_phase_polynomial,
    parity_gadget,
    synthesize_terms,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Result types
# =============================================================================

@dataclass
class CliffordBlock:
    """A block of Clifford gates."""
    circuit: Circuit


@dataclass
class NonCliffordBlock:
    """A non-Clifford block and its tensor-side description.

    Attributes
    ----------
    circuit : Circuit
        One T gadget per term of the default decomposition.
    phase_polynomial : Optional[PhasePolynomial]
        Phase polynomial of the block before its Clifford remainder was
        moved out.
    tensor : Optional[BlockTensor]
        Signature tensor, default matrix and qubit mapping.
    diagnostic : Optional[str]
        Why the block was left out of tensor extraction, if it was.
    """
    circuit: Circuit
    phase_polynomial: Optional[PhasePolynomial] = None
    tensor: Optional[BlockTensor] = None
    diagnostic: Optional[str] = None

    @property
    def mapping(self) -> List[int]:
        return self.tensor.mapping if self.tensor is not None else []

    @property
    def matrix(self) -> Optional[np.ndarray]:
        return self.tensor.matrix if self.tensor is not None else None


@dataclass
class CompiledCircuit:
    """Output of :func:`compile_circuit`.

    Attributes
    ----------
    original : Circuit
        The input circuit.
    optimized : Circuit
        The circuit after pre-optimization and Hadamard minimization.
    partitioned : PartitionedCircuit
        The final front/blocks/back split.
    blocks : List
        ``[front, *blocks, back]`` as :class:`CliffordBlock` (even
        positions) and :class:`NonCliffordBlock` (odd positions).
    num_inputs : int
        Qubits of the input; higher qubits are ancillas.
    ancillas : List[int]
        Ancillas introduced by Hadamard gadgets.
    stats : CompileFileStats
    verification : Dict[str, VerificationResult]
        Checker result per stage, when verification ran.
    """
    original: Circuit
    optimized: Circuit
    partitioned: PartitionedCircuit
    blocks: List[Union[CliffordBlock, NonCliffordBlock]] = field(default_factory=list)
    num_inputs: int = 0
    ancillas: List[int] = field(default_factory=list)
    stats: CompileFileStats = field(default_factory=CompileFileStats)
    verification: Dict[str, VerificationResult] = field(default_factory=dict)

    def merge(self) -> Circuit:
        """The whole compiled circuit, ancillas included."""
        return self.partitioned.merge()

    def non_clifford_blocks(self) -> List[NonCliffordBlock]:
        return [b for b in self.blocks if isinstance(b, NonCliffordBlock)]


# =============================================================================
# Stages
# =============================================================================

def _verify(
    stage: str,
    original: Circuit,
    new: Circuit,
    num_inputs: int,
    config: CompileConfig,
    ctx: RunContext,
    out: Dict[str, VerificationResult],
) -> None:
    if not config.verify:
        return
    if ctx.checker is None:
        ctx.logger.warning("Verification requested but no checker is configured")
        return
    result = ctx.checker.check(original, new, num_inputs)
    out[stage] = result
    if result.verdict is Verdict.EQUAL:
        ctx.logger.info("  Verified %s stage (%s)", stage, result.checker)
    elif result.verdict is Verdict.NOT_EQUAL:
        ctx.logger.error("  Verification of %s stage failed: %s", stage, result.detail)
    else:
        ctx.logger.warning("  Verification of %s stage inconclusive: %s", stage, result.detail)


def _extract_block(
    index: int,
    block: Circuit,
    partitioned: PartitionedCircuit,
    ctx: RunContext,
) -> NonCliffordBlock:
    """Turn block ``index`` into T gadgets plus a Clifford remainder.

    A block that cannot be written with CNOT and phase gates is kept as it is
    and reported through ``NonCliffordBlock.diagnostic``.
    """
    try:
        partitioned.clifford_after(index).prepend(to_cnot_phase(block))
        poly = extract_phase_polynomial(block, block.num_qubits)
    except UnsupportedGateError as e:
        ctx.logger.warning("  Block %d left out of tensor extraction: %s", index + 1, e)
        return NonCliffordBlock(circuit=block, diagnostic=str(e))

    block_tensor = build_block_tensor(poly)
    gadgets, _, _, _ = synthesize_terms(block_tensor.matrix, block_tensor.mapping)
    gadgets.num_qubits = max(gadgets.num_qubits, block.num_qubits)

    wires = list(range(poly.num_qubits))
    remainder = Circuit(num_qubits=block.num_qubits)
    for parity, phase in poly.clifford_remainder():
        remainder.extend(parity_gadget(parity, phase, wires))
    remainder.extend(g for g in block if g.kind is GateKind.CNOT)

    partitioned.clifford_after(index).prepend(remainder)
    partitioned.blocks[index] = gadgets
    return NonCliffordBlock(circuit=gadgets, phase_polynomial=poly, tensor=block_tensor)


def compile_circuit(
    circuit: Circuit,
    config: Optional[CompileConfig] = None,
    ctx: Optional[RunContext] = None,
) -> CompiledCircuit:
    """Compile a Clifford+T circuit into blocks and signature tensors.

    Raises
    ------
    CapacityExceededError
        If the circuit or every block split breaks the configured caps.
    CompilationAbortedError
        If the context's abort event is set during the split search.
    """
    config = config or CompileConfig()
    ctx = ctx or RunContext()
    num_inputs = circuit.num_qubits
    verification: Dict[str, VerificationResult] = {}

    stats = CompileFileStats(qubits=num_inputs)
    stats.tcount.initial = circuit.weighted_tcount()
    budget = split_budget(num_inputs, config)

    current = circuit.copy()
    preoptimizer = ctx.preoptimizer or (PyZXPreoptimizer() if config.zx_preopt else None)
    if preoptimizer is not None:
        ctx.logger.info("  Pre-optimizing with %s...", preoptimizer.name)
        current = preoptimizer.run(current)
        stats.tcount.preoptimized = current.weighted_tcount()
        ctx.logger.info(
            "  Pre-optimization done: T-count %d => %d",
            stats.tcount.initial, stats.tcount.preoptimized,
        )
        _verify("preopt", circuit, current, num_inputs, config, ctx, verification)

    stats.hcount.initial = interior_hadamard_count(current)
    if ctx.hadamard_minimizer is not None:
        ctx.logger.info("  Minimizing Hadamards with %s...", ctx.hadamard_minimizer.name)
        current = ctx.hadamard_minimizer.run(current)
        _verify("hopt", circuit, current, num_inputs, config, ctx, verification)
    stats.hcount.optimized = interior_hadamard_count(current)
    ctx.logger.info(
        "  Interior Hadamards: %d => %d", stats.hcount.initial, stats.hcount.optimized
    )

    partitioned = partition(current)
    before = (len(partitioned.blocks) + 1) // 2
    choice = search_splits(partitioned.hadamard_counts(), budget, config, ctx)
    partitioned.merge_spans(choice.spans)

    allocator = AncillaAllocator(max(partitioned.num_qubits, num_inputs))
    for i in range(0, len(partitioned.blocks), 2):
        block = partitioned.blocks[i]
        gadgetize_hadamards(block, allocator, partitioned.front, partitioned.back)
    stats.ancilla = len(allocator.allocated)
    ctx.logger.info(
        "  Gadgetizing done: %d blocks => %d blocks, %d ancilla",
        before, choice.num_blocks, stats.ancilla,
    )
    _verify("partition", circuit, partitioned.merge(), num_inputs, config, ctx, verification)

    extracted: List[NonCliffordBlock] = []
    for i in range(0, len(partitioned.blocks), 2):
        result = _extract_block(i, partitioned.blocks[i], partitioned, ctx)
        extracted.append(result)
        if result.tensor is not None:
            stats.blocks.append(BlockStats(
                qubits=len(result.tensor.mapping),
                terms=result.tensor.num_terms,
            ))
    _verify("resynth", circuit, partitioned.merge(), num_inputs, config, ctx, verification)

    if partitioned.blocks:
        layout: List[Union[CliffordBlock, NonCliffordBlock]] = [CliffordBlock(partitioned.front)]
        for i, block in enumerate(partitioned.blocks):
            layout.append(extracted[i // 2] if i % 2 == 0 else CliffordBlock(block))
        layout.append(CliffordBlock(partitioned.back))
    else:
        whole = partitioned.front.copy().merge(partitioned.back)
        layout = [CliffordBlock(whole)]

    stats.verification = {
        stage: result.verdict.name.lower() for stage, result in verification.items()
    }
    return CompiledCircuit(
        original=circuit,
        optimized=current,
        partitioned=partitioned,
        blocks=layout,
        num_inputs=num_inputs,
        ancillas=list(allocator.allocated),
        stats=stats,
        verification=verification,
    )


def load_circuit(path: Union[str, Path]) -> Circuit:
    """Read a ``.qc`` file or, for any other suffix, an OpenQASM 2 file."""
    path = Path(path)
    if path.suffix == ".qc":
        return qc.load(path)
    return qasm.load(path)


def compile_file(
    path: Union[str, Path],
    config: Optional[CompileConfig] = None,
    ctx: Optional[RunContext] = None,
) -> CompiledCircuit:
    """Load and compile one circuit file."""
    ctx = ctx or RunContext()
    ctx.logger.info("Processing: %s", path)
    compiled = compile_circuit(load_circuit(path), config, ctx)
    compiled.stats.path = str(Path(path).resolve())
    return compiled
