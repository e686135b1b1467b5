# src/circtensor/phasepoly/decomposition.py
"""
Decompositions of signature tensors into rank-1 terms.

A decomposition is an ordered multiset of GF(2) vectors. Since the signature
tensor is a sum over GF(2), a term used an even number of times contributes
nothing; :meth:`Decomposition.folded` keeps each term with odd multiplicity
exactly once.
"""
from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np

from circtensor.exceptions import MalformedDecompositionError
from circtensor.phasepoly.tensor import signature_tensor


class Decomposition:
    """Ordered multiset of rank-1 terms over ``num_qubits`` qubits.

    Parameters
    ----------
    num_qubits : int
        Length of every term.
    """

    def __init__(self, num_qubits: int):
        self.num_qubits = num_qubits
        self._terms: Dict[bytes, np.ndarray] = {}
        self._counts: Dict[bytes, int] = {}

    @classmethod
    def from_matrix(cls, matrix: np.ndarray, num_qubits: Optional[int] = None) -> "Decomposition":
        """Build a decomposition from a matrix whose columns are terms.

        Raises
        ------
        MalformedDecompositionError
            If the matrix is not 2-D, has entries other than 0 and 1, or its
            row count differs from ``num_qubits``.
        """
        matrix = np.asarray(matrix)
        if matrix.ndim != 2:
            raise MalformedDecompositionError(
                f"decomposition must be a 2-D matrix, got shape {matrix.shape}"
            )
        if matrix.dtype != bool:
            if not np.issubdtype(matrix.dtype, np.number):
                raise MalformedDecompositionError(f"unsupported matrix dtype {matrix.dtype}")
            if not np.isin(matrix, (0, 1)).all():
                raise MalformedDecompositionError("decomposition entries must be 0 or 1")
        if num_qubits is not None and matrix.shape[0] != num_qubits:
            raise MalformedDecompositionError(
                f"terms have length {matrix.shape[0]}, expected {num_qubits}"
            )

        decomposition = cls(matrix.shape[0])
        bits = matrix.astype(bool)
        for col in range(bits.shape[1]):
            decomposition.add(bits[:, col])
        return decomposition

    def add(self, term: np.ndarray, count: int = 1) -> None:
        term = np.asarray(term).astype(bool)
        if term.shape != (self.num_qubits,):
            raise MalformedDecompositionError(
                f"term of shape {term.shape} in a decomposition over {self.num_qubits} qubits"
            )
        key = term.tobytes()
        if key not in self._terms:
            self._terms[key] = term.copy()
            self._counts[key] = 0
        self._counts[key] += count

    def multiplicity(self, term: np.ndarray) -> int:
        return self._counts.get(np.asarray(term).astype(bool).tobytes(), 0)

    def __len__(self) -> int:
        return sum(self._counts.values())

    @property
    def num_distinct(self) -> int:
        return len(self._terms)

    def zero_terms(self) -> int:
        """How many terms (with multiplicity) are the zero vector."""
        return self._counts.get(np.zeros(self.num_qubits, dtype=bool).tobytes(), 0)

    def terms(self) -> List[np.ndarray]:
        """Distinct terms in order of first appearance."""
        return [t.copy() for t in self._terms.values()]

    def folded(self) -> np.ndarray:
        """Matrix of the nonzero terms with odd multiplicity, first appearance order."""
        cols = [
            self._terms[key]
            for key, count in self._counts.items()
            if count % 2 and self._terms[key].any()
        ]
        if not cols:
            return np.zeros((self.num_qubits, 0), dtype=bool)
        return np.array(cols, dtype=bool).T

    def to_matrix(self) -> np.ndarray:
        """Matrix with every term repeated by its multiplicity."""
        cols = [
            self._terms[key]
            for key, count in self._counts.items()
            for _ in range(count)
        ]
        if not cols:
            return np.zeros((self.num_qubits, 0), dtype=bool)
        return np.array(cols, dtype=bool).T

    def signature_tensor(self) -> np.ndarray:
        return signature_tensor(self.folded())

    def reconstructs(self, tensor: np.ndarray) -> bool:
        """Whether the folded terms sum to ``tensor``."""
        return bool(np.array_equal(self.signature_tensor(), np.asarray(tensor).astype(bool)))
