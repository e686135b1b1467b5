# src/circtensor/compiler/resynth.py
"""
Resynthesis of decomposed signature tensors.

An external decomposer returns a new matrix of rank-1 terms for a block's
signature tensor. This module turns it back into a circuit: terms used an
even number of times cancel, each remaining term becomes a T gadget (or
part of a CCZ/CS gadget), and, when the block's original matrix is known, a
Clifford correction makes the circuit implement exactly the original
diagonal.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from circtensor.circuits import Circuit
from circtensor.compiler.context import ResynthConfig, RunContext
from circtensor.exceptions import (
    MalformedDecompositionError,
    MappingMismatchError,
    TensorMismatchError,
)
from circtensor.phasepoly import Decomposition, clifford_correction, synthesize_terms

logger = logging.getLogger(__name__)


@dataclass
class ResynthesisResult:
    """Circuit built from a decomposition.

    Attributes
    ----------
    circuit : Circuit
        Gadgets followed by the Clifford correction, on mapped qubits.
    mapping : List[int]
        Physical qubit of each matrix row.
    nccz, ncs, nt : int
        CCZ, CS and single-T gadgets used.
    correction : int
        Gates in the Clifford correction.
    """
    circuit: Circuit
    mapping: List[int] = field(default_factory=list)
    nccz: int = 0
    ncs: int = 0
    nt: int = 0
    correction: int = 0

    @property
    def tcount(self) -> int:
        return 7 * self.nccz + 3 * self.ncs + self.nt


def validate_mapping(mapping: Sequence[int], num_rows: int) -> List[int]:
    """Check that ``mapping`` assigns distinct qubits to ``num_rows`` rows.

    Raises
    ------
    MappingMismatchError
        On a length mismatch, a negative qubit or a repeated qubit.
    """
    mapping = [int(q) for q in mapping]
    if len(mapping) != num_rows:
        raise MappingMismatchError(
            f"mapping has {len(mapping)} entries for a matrix with {num_rows} rows"
        )
    if any(q < 0 for q in mapping):
        raise MappingMismatchError(f"negative qubit in mapping {mapping}")
    if len(set(mapping)) != len(mapping):
        raise MappingMismatchError(f"mapping {mapping} repeats a qubit")
    return mapping


def resynthesize(
    matrix: np.ndarray,
    mapping: Optional[Sequence[int]] = None,
    original: Optional[np.ndarray] = None,
    config: Optional[ResynthConfig] = None,
    ctx: Optional[RunContext] = None,
) -> ResynthesisResult:
    """Build a circuit from a decomposition matrix.

    Parameters
    ----------
    matrix : np.ndarray
        Decomposition with one column per term, entries 0/1.
    mapping : Sequence[int], optional
        Physical qubit of each row. Defaults to the identity.
    original : np.ndarray, optional
        The block's original matrix. When given, the new decomposition must
        reconstruct its signature tensor and a Clifford correction is
        appended.
    config : ResynthConfig, optional
    ctx : RunContext, optional

    Raises
    ------
    MalformedDecompositionError
        If a matrix is not a 2-D 0/1 matrix, or the two matrices have
        different row counts.
    MappingMismatchError
        If the mapping does not fit the matrix.
    TensorMismatchError
        If the two matrices have different signature tensors.
    """
    config = config or ResynthConfig()
    ctx = ctx or RunContext()

    decomposition = Decomposition.from_matrix(matrix)
    n = decomposition.num_qubits
    if mapping is None:
        ctx.logger.warning("No qubit mapping given; assuming identity mapping")
        mapping = list(range(n))
    mapping = validate_mapping(mapping, n)
    if original is None:
        ctx.logger.warning("No original decomposition given; skipping Clifford correction")

    zeros = decomposition.zero_terms()
    if zeros:
        ctx.logger.warning("Dropping %d all-zero term(s)", zeros)
    folded = decomposition.folded()
    if folded.shape[1] < len(decomposition) - zeros:
        ctx.logger.info(
            "  %d terms fold to %d after cancelling repeats",
            len(decomposition) - zeros, folded.shape[1],
        )

    reference = None
    if original is not None:
        reference = Decomposition.from_matrix(original)
        if reference.num_qubits != n:
            raise MalformedDecompositionError(
                f"original has {reference.num_qubits} rows, decomposition has {n}"
            )
        if not decomposition.reconstructs(reference.signature_tensor()):
            raise TensorMismatchError(
                "decomposition does not reconstruct the original signature tensor"
            )

    circuit, nccz, ncs, nt = synthesize_terms(folded, mapping, gadgets=config.gadgets)
    correction = 0
    if reference is not None:
        fix = clifford_correction(folded, reference.to_matrix(), mapping)
        correction = len(fix)
        circuit.merge(fix)

    ctx.logger.info(
        "  Resynthesized %d terms: %d CCZ, %d CS, %d T, %d correction gates",
        folded.shape[1], nccz, ncs, nt, correction,
    )
    return ResynthesisResult(
        circuit=circuit,
        mapping=mapping,
        nccz=nccz,
        ncs=ncs,
        nt=nt,
        correction=correction,
    )
