# src/circtensor/phasepoly/__init__.py
"""
Phase polynomials, signature tensors and their decompositions.

Available Functions
-------------------
- extract_phase_polynomial: Phase polynomial of a CNOT+phase circuit
- build_block_tensor: Signature tensor, default matrix and qubit mapping
- signature_tensor: Signature tensor of a decomposition matrix
- clifford_correction: CZ/phase layer relating two decompositions
- synthesize_terms: Circuit with one T (or CCZ/CS gadget) per term
"""

from .extractor import PhasePolynomial, extract_phase_polynomial
from .tensor import (
    BlockTensor,
    build_block_tensor,
    clifford_correction,
    is_symmetric,
    phase_polynomial_coefficients,
    signature_tensor,
)
from .decomposition import Decomposition
from .synthesis import (
    basis_change,
    ccz_gadget,
    cs_gadget,
    find_ccz_window,
    find_cs_window,
    gf2_rank,
    parity_gadget,
    pivot_columns,
    synthesize_linear,
    synthesize_terms,
)

__all__ = [
    "PhasePolynomial",
    "extract_phase_polynomial",
    "BlockTensor",
    "build_block_tensor",
    "clifford_correction",
    "is_symmetric",
    "phase_polynomial_coefficients",
    "signature_tensor",
    "Decomposition",
    "basis_change",
    "ccz_gadget",
    "cs_gadget",
    "find_ccz_window",
    "find_cs_window",
    "gf2_rank",
    "parity_gadget",
    "pivot_columns",
    "synthesize_linear",
    "synthesize_terms",
]
