# src/circtensor/testing/__init__.py
"""
circtensor Testing Utilities.

Usage
-----
>>> from circtensor.testing import random_circuit, assert_equivalent

Available Functions
-------------------
- random_circuit: Seeded random Clifford+T circuit
- random_cnot_phase: Seeded random CNOT+phase circuit
- random_matrix: Seeded random decomposition matrix
- exact_checker: In-process equivalence checker chain
- assert_equivalent: Fail unless two circuits are equal up to global phase
- assert_same_tensor: Fail unless two signature tensors are equal

Status Indicators
-----------------
- STATUS_OK (✓): Equal
- STATUS_WARN (⚠️): Inconclusive
- STATUS_FAIL (✗): Not equal
"""

from .testing_utils import (
    # Status indicators
    STATUS_OK,
    STATUS_WARN,
    STATUS_FAIL,
    format_status,

    # Generators
    random_circuit,
    random_cnot_phase,
    random_matrix,

    # Equivalence
    CheckLog,
    CheckRecord,
    exact_checker,
    assert_equivalent,
    assert_same_tensor,
    column_set,
)

__all__ = [
    # Status
    'STATUS_OK',
    'STATUS_WARN',
    'STATUS_FAIL',
    'format_status',

    # Generators
    'random_circuit',
    'random_cnot_phase',
    'random_matrix',

    # Equivalence
    'CheckLog',
    'CheckRecord',
    'exact_checker',
    'assert_equivalent',
    'assert_same_tensor',
    'column_set',
]
