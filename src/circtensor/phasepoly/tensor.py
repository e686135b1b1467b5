# src/circtensor/phasepoly/tensor.py
"""
Signature tensors of phase polynomials.

For a decomposition matrix ``M`` with one column per T gate, the signature
tensor is

    T[i, j, k] = XOR over columns l of M[i, l] & M[j, l] & M[k, l]

Two decompositions with the same signature tensor implement the same
diagonal unitary up to a Clifford (CZ and phase gates), which
:func:`clifford_correction` computes.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from circtensor.circuits import Circuit, Gate
from circtensor.exceptions import TensorMismatchError
from circtensor.phasepoly.extractor import PhasePolynomial

logger = logging.getLogger(__name__)


@dataclass
class BlockTensor:
    """Tensor-side description of one non-Clifford block.

    Attributes
    ----------
    tensor : np.ndarray
        Boolean signature tensor of shape ``(n, n, n)``.
    matrix : np.ndarray
        Default decomposition, boolean of shape ``(n, r)``.
    mapping : List[int]
        Physical qubit of each tensor index.
    """
    tensor: np.ndarray
    matrix: np.ndarray
    mapping: List[int] = field(default_factory=list)

    @property
    def num_terms(self) -> int:
        return self.matrix.shape[1]


def signature_tensor(matrix: np.ndarray) -> np.ndarray:
    """Signature tensor of a decomposition matrix (rows = qubits, columns = terms)."""
    m = np.asarray(matrix).astype(np.int64) % 2
    t = np.einsum("il,jl,kl->ijk", m, m, m)
    return (t % 2).astype(bool)


def is_symmetric(tensor: np.ndarray) -> bool:
    """Whether a 3-index tensor is invariant under every index permutation."""
    tensor = np.asarray(tensor)
    return all(
        np.array_equal(tensor, np.transpose(tensor, perm))
        for perm in itertools.permutations(range(3))
    )


def build_block_tensor(poly: PhasePolynomial) -> BlockTensor:
    """Signature tensor, default decomposition and mapping of a phase polynomial.

    Every parity with an odd phase contributes one column. Qubits that no
    column touches are left out of the mapping.
    """
    columns = poly.t_parities()
    matrix = columns.T.copy() if len(columns) else np.zeros((poly.num_qubits, 0), dtype=bool)
    used = matrix.any(axis=1)
    mapping = [int(q) for q in np.flatnonzero(used)]
    matrix = matrix[used]
    logger.debug("Block tensor over %d qubits with %d terms", len(mapping), matrix.shape[1])
    return BlockTensor(tensor=signature_tensor(matrix), matrix=matrix, mapping=mapping)


# =============================================================================
# Clifford correction
# =============================================================================

def phase_polynomial_coefficients(matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Monomial weights mod 8 of the function implemented by one T per column.

    The parity of a set ``S`` of bits expands as
    ``sum x_i - 2 sum x_i x_j + 4 sum x_i x_j x_k`` modulo 8.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray, np.ndarray]
        Linear weights ``(n,)``, quadratic weights ``(n, n)`` and cubic
        weights ``(n, n, n)``; off-diagonal entries are meaningful for
        distinct indices only.
    """
    m = np.asarray(matrix).astype(np.int64) % 2
    linear = m.sum(axis=1) % 8
    quadratic = (6 * (m @ m.T)) % 8
    cubic = (4 * np.einsum("il,jl,kl->ijk", m, m, m)) % 8
    return linear, quadratic, cubic


def clifford_correction(
    matrix: np.ndarray,
    original: np.ndarray,
    mapping: Sequence[int],
) -> Circuit:
    """Clifford gates turning the diagonal of ``matrix`` into that of ``original``.

    Both matrices must have the same signature tensor. The correction is a
    layer of CZ gates followed by phase gates, in mapped qubits.

    Raises
    ------
    TensorMismatchError
        If the difference between the two diagonals is not Clifford.
    """
    lin_new, quad_new, cub_new = phase_polynomial_coefficients(matrix)
    lin_old, quad_old, cub_old = phase_polynomial_coefficients(original)
    lin = (lin_old - lin_new) % 8
    quad = (quad_old - quad_new) % 8
    cub = (cub_old - cub_new) % 8
    n = len(lin)

    for i, j, k in itertools.combinations(range(n), 3):
        if cub[i, j, k]:
            raise TensorMismatchError(f"cubic terms differ at {(i, j, k)}")

    circuit = Circuit(num_qubits=max(mapping, default=-1) + 1)
    for i in range(n):
        for j in range(i):
            if quad[i, j] == 4:
                circuit.append(Gate.cz(mapping[i], mapping[j]))
            elif quad[i, j]:
                raise TensorMismatchError(f"quadratic terms differ by {quad[i, j]} at {(j, i)}")
        if lin[i] % 2:
            raise TensorMismatchError(f"linear terms differ by {lin[i]} at {i}")
        if lin[i]:
            circuit.append(Gate.phase_gate(int(lin[i]), mapping[i]))
    return circuit
