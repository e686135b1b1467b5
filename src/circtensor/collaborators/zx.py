# src/circtensor/collaborators/zx.py
"""
ZX-calculus pre-optimization with pyzx.

pyzx is an optional dependency (``pip install circtensor[zx]``) and is only
imported when the pass runs.
"""
from __future__ import annotations

import logging

from circtensor.circuits import Circuit, qasm
from circtensor.collaborators.base import CircuitPass
from circtensor.exceptions import ExternalToolError

logger = logging.getLogger(__name__)


class PyZXPreoptimizer(CircuitPass):
    """Reduce the T-count with ``full_reduce`` and re-extract a circuit."""

    name = "pyzx"

    def run(self, circuit: Circuit) -> Circuit:
        try:
            import pyzx as zx
        except ImportError as e:
            raise ExternalToolError(
                "ZX pre-optimization needs pyzx; install circtensor[zx]"
            ) from e

        zx_circuit = zx.Circuit.from_qasm(qasm.dumps(circuit, definitions=False))
        graph = zx_circuit.to_graph()
        zx.full_reduce(graph)
        try:
            extracted = zx.extract.extract_circuit(graph.copy()).to_basic_gates()
        except Exception as e:
            raise ExternalToolError(f"pyzx could not extract a circuit: {e}") from e

        logger.debug(
            "pyzx T-count %d -> %d", zx_circuit.tcount(), extracted.tcount()
        )
        optimized = qasm.loads(extracted.to_qasm())
        optimized.num_qubits = max(optimized.num_qubits, circuit.num_qubits)
        return optimized
