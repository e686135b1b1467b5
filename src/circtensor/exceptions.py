# src/circtensor/exceptions.py
"""
Error kinds raised by the circuit/tensor compiler.

Every error derives from :class:`CircuitTensorError` so that a batch driver
can isolate the failure of a single file without catching unrelated bugs.
"""
from __future__ import annotations

from typing import Optional


class CircuitTensorError(Exception):
    """Base class for all circtensor errors."""
    pass


class CircuitParseError(CircuitTensorError):
    """Raised when a circuit file cannot be read."""
    pass


class UnsupportedGateError(CircuitTensorError):
    """Raised when a gate is outside the fragment a stage can handle.

    Parameters
    ----------
    gate : object
        The offending gate.
    context : str, optional
        Where the gate was encountered.
    """

    def __init__(self, gate: object, context: Optional[str] = None):
        self.gate = gate
        self.context = context
        message = f"unsupported gate {gate}"
        if context:
            message += f" in {context}"
        super().__init__(message)


class CapacityExceededError(CircuitTensorError):
    """Raised when no block split satisfies the qubit/ancilla/block caps."""
    pass


class TensorMismatchError(CircuitTensorError):
    """Raised when a decomposition does not reconstruct the original tensor."""
    pass


class MalformedDecompositionError(CircuitTensorError):
    """Raised when a decomposition matrix has the wrong shape or entries."""
    pass


class MappingMismatchError(CircuitTensorError):
    """Raised when a qubit mapping is inconsistent with its decomposition."""
    pass


class CompilationAbortedError(CircuitTensorError):
    """Raised when a run is cancelled while the split search is running."""
    pass


class ExternalToolError(CircuitTensorError):
    """Raised when an external command or library fails on a circuit."""
    pass
