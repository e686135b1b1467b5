# src/circtensor/phasepoly/synthesis.py
"""
GF(2) linear algebra and gadget synthesis.

A decomposition matrix has one row per mapped qubit and one column per
rank-1 term. Every helper here works on row indices into a mapping and emits
gates on the mapped (physical) qubits.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np

from circtensor.circuits import Circuit, Gate


# =============================================================================
# GF(2) helpers
# =============================================================================

def as_bits(array: np.ndarray) -> np.ndarray:
    """View an integer or boolean array as a boolean GF(2) array."""
    return np.asarray(array).astype(bool)


def gf2_rank(rows: np.ndarray) -> int:
    """Rank over GF(2) of a 2-D array."""
    m = as_bits(rows).copy()
    rank = 0
    n_rows, n_cols = m.shape
    for col in range(n_cols):
        hits = np.flatnonzero(m[rank:, col])
        if not len(hits):
            continue
        pivot = rank + hits[0]
        m[[rank, pivot]] = m[[pivot, rank]]
        for r in range(n_rows):
            if r != rank and m[r, col]:
                m[r] ^= m[rank]
        rank += 1
        if rank == n_rows:
            break
    return rank


def pivot_columns(rows: np.ndarray) -> List[int]:
    """Columns in which a row echelon form of ``rows`` has its pivots.

    For linearly independent rows, the square submatrix of ``rows`` on these
    columns is invertible.
    """
    m = as_bits(rows).copy()
    pivots: List[int] = []
    n_rows, n_cols = m.shape
    rank = 0
    for col in range(n_cols):
        hits = np.flatnonzero(m[rank:, col])
        if not len(hits):
            continue
        pivot = rank + hits[0]
        m[[rank, pivot]] = m[[pivot, rank]]
        for r in range(rank + 1, n_rows):
            if m[r, col]:
                m[r] ^= m[rank]
        pivots.append(col)
        rank += 1
        if rank == n_rows:
            break
    return pivots


def synthesize_linear(matrix: np.ndarray) -> List[Tuple[int, int]]:
    """CNOTs ``(control, target)`` whose parity matrix is ``matrix``.

    Row ``q`` of ``matrix`` is the parity held by wire ``q`` after the
    circuit. The matrix is reduced to the identity by row additions and the
    additions are replayed in reverse.

    Raises
    ------
    ValueError
        If the matrix is singular.
    """
    m = as_bits(matrix).copy()
    n = m.shape[0]
    ops: List[Tuple[int, int]] = []
    for i in range(n):
        if not m[i, i]:
            below = np.flatnonzero(m[i + 1:, i])
            if not len(below):
                raise ValueError("parity matrix is singular")
            j = i + 1 + below[0]
            m[i] ^= m[j]
            ops.append((j, i))
        for j in range(n):
            if j != i and m[j, i]:
                m[j] ^= m[i]
                ops.append((i, j))
    return ops[::-1]


def basis_change(rows: np.ndarray) -> Tuple[List[int], List[Tuple[int, int]]]:
    """Move independent parities onto wires.

    Returns the wires ``pivots`` and CNOTs after which wire ``pivots[r]``
    holds parity ``rows[r]`` while every other wire is unchanged.
    """
    rows = as_bits(rows)
    n = rows.shape[1]
    pivots = pivot_columns(rows)
    if len(pivots) != rows.shape[0]:
        raise ValueError("parities are not linearly independent")
    target = np.eye(n, dtype=bool)
    for r, p in enumerate(pivots):
        target[p] = rows[r]
    return pivots, synthesize_linear(target)


# =============================================================================
# Gadgets
# =============================================================================

def _key(vector: np.ndarray) -> bytes:
    return as_bits(vector).tobytes()


def parity_gadget(parity: np.ndarray, phase: int, mapping: Sequence[int]) -> List[Gate]:
    """Apply ``phase`` to the parity of the mapped qubits selected by ``parity``.

    The parity is accumulated on its first selected qubit with a CNOT
    ladder, which is undone afterwards.
    """
    support = np.flatnonzero(as_bits(parity))
    if not len(support) or phase % 8 == 0:
        return []
    t = support[0]
    ladder = [Gate.cnot(mapping[i], mapping[t]) for i in support[1:]]
    return ladder + [Gate.phase_gate(phase, mapping[t])] + ladder[::-1]


def find_ccz_window(terms: Sequence[np.ndarray]) -> Optional[Tuple[np.ndarray, np.ndarray, np.ndarray]]:
    """Match ``[a, b, c, a^b, a^c, b^c, a^b^c]`` with the last four in any order."""
    if len(terms) < 7:
        return None
    a, b, c = (as_bits(t) for t in terms[:3])
    if gf2_rank(np.array([a, b, c])) < 3:
        return None
    required = {_key(a ^ b), _key(a ^ c), _key(b ^ c), _key(a ^ b ^ c)}
    if {_key(t) for t in terms[3:7]} != required:
        return None
    return a, b, c


def find_cs_window(terms: Sequence[np.ndarray]) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    """Match ``[a, b, a^b]``."""
    if len(terms) < 3:
        return None
    a, b, c = (as_bits(t) for t in terms[:3])
    if gf2_rank(np.array([a, b])) < 2:
        return None
    if _key(a ^ b) != _key(c):
        return None
    return a, b


def ccz_gadget(a: np.ndarray, b: np.ndarray, c: np.ndarray, mapping: Sequence[int]) -> List[Gate]:
    """Gates equal to T on each of the seven nonzero parities spanned by a, b, c."""
    pivots, cnots = basis_change(np.array([a, b, c]))
    i, j, k = (mapping[p] for p in pivots)
    change = [Gate.cnot(mapping[ctl], mapping[tgt]) for ctl, tgt in cnots]
    body = [
        Gate.ccz(i, j, k),
        Gate.cz(i, j), Gate.cz(i, k), Gate.cz(j, k),
        Gate.z(i), Gate.z(j), Gate.z(k),
    ]
    return change + body + change[::-1]


def cs_gadget(a: np.ndarray, b: np.ndarray, mapping: Sequence[int]) -> List[Gate]:
    """Gates equal to T on the parities a, b and a^b."""
    pivots, cnots = basis_change(np.array([a, b]))
    i, j = (mapping[p] for p in pivots)
    change = [Gate.cnot(mapping[ctl], mapping[tgt]) for ctl, tgt in cnots]
    body = [Gate.cs(i, j), Gate.cz(i, j), Gate.s(i), Gate.s(j)]
    return change + body + change[::-1]


def synthesize_terms(
    matrix: np.ndarray,
    mapping: Sequence[int],
    gadgets: bool = False,
) -> Tuple[Circuit, int, int, int]:
    """Synthesize one T per column of ``matrix``.

    With ``gadgets`` set, runs of seven columns forming a CCZ pattern and
    runs of three columns forming a CS pattern are synthesized as a single
    CCZ or CS gadget instead.

    Returns
    -------
    Tuple[Circuit, int, int, int]
        The circuit and the number of CCZ, CS and T gadgets used.
    """
    matrix = as_bits(matrix)
    terms = [matrix[:, col] for col in range(matrix.shape[1])]
    circuit = Circuit(num_qubits=max(mapping, default=-1) + 1)
    nccz = ncs = nt = 0
    idx = 0
    while idx < len(terms):
        if gadgets:
            abc = find_ccz_window(terms[idx:idx + 7])
            if abc is not None:
                circuit.extend(ccz_gadget(*abc, mapping))
                nccz += 1
                idx += 7
                continue
            ab = find_cs_window(terms[idx:idx + 3])
            if ab is not None:
                circuit.extend(cs_gadget(*ab, mapping))
                ncs += 1
                idx += 3
                continue
        circuit.extend(parity_gadget(terms[idx], 1, mapping))
        nt += 1
        idx += 1
    return circuit, nccz, ncs, nt
