# src/circtensor/compiler/context.py
"""
Configuration and per-run context for compilation and resynthesis.

Nothing in the compiler keeps module-level state: the logger, the random
seed, the abort signal and the external collaborators all travel in a
:class:`RunContext` that is passed explicitly to each stage.
"""
from __future__ import annotations

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import (
    Any,
    MutableMapping,
    Optional,
    Tuple,
    TYPE_CHECKING,
)

from circtensor.exceptions import CompilationAbortedError

if TYPE_CHECKING:
    from circtensor.collaborators.base import CircuitPass, EquivalenceChecker


@dataclass
class CompileConfig:
    """Options of the compile pipeline.

    Attributes
    ----------
    qubits : Optional[int]
        Cap on the qubits of each block, ancillas included. ``None`` is
        unlimited.
    ancilla : Optional[int]
        Cap on the ancillas (Hadamard gadgets) of each block.
    max_blocks : Optional[int]
        Cap on the number of non-Clifford blocks.
    split_iters : int
        Number of randomized trials of the block-split search.
    workers : int
        Worker processes for the split search; 1 runs it inline.
    zx_preopt : bool
        Run the ZX-calculus pre-optimizer first.
    verify : bool
        Check every stage against the input with the context's checker.
    """
    qubits: Optional[int] = None
    ancilla: Optional[int] = None
    max_blocks: Optional[int] = None
    split_iters: int = 10000
    workers: int = 1
    zx_preopt: bool = False
    verify: bool = False

    def __post_init__(self) -> None:
        if self.split_iters < 0:
            raise ValueError("split_iters must be non-negative")
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        for name in ("qubits", "ancilla", "max_blocks"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative")


@dataclass
class ResynthConfig:
    """Options of the resynthesizer.

    Attributes
    ----------
    gadgets : bool
        Synthesize matching term runs as CCZ and CS gadgets.
    """
    gadgets: bool = False


class _PrefixAdapter(logging.LoggerAdapter):
    """Prefixes every message, e.g. with the file's ``[ i/N]`` position."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"{self.extra['prefix']} {msg}", kwargs


@dataclass
class RunContext:
    """State shared by the stages working on one run.

    Attributes
    ----------
    logger : logging.Logger or logging.LoggerAdapter
        Where diagnostics go.
    seed : Optional[int]
        Seed for the randomized split search. ``None`` draws fresh entropy,
        which is logged so that the run can be repeated.
    abort : threading.Event
        Set to cancel the run; long stages poll it.
    started : float
        Start of the run, seconds since the epoch.
    checker : Optional[EquivalenceChecker]
        Equivalence checker used when verification is on.
    preoptimizer : Optional[CircuitPass]
        Pass run on each input circuit before splitting.
    hadamard_minimizer : Optional[CircuitPass]
        Pass reducing interior Hadamards before splitting.
    """
    logger: Any = field(default_factory=lambda: logging.getLogger("circtensor"))
    seed: Optional[int] = None
    abort: threading.Event = field(default_factory=threading.Event)
    started: float = field(default_factory=time.time)
    checker: Optional["EquivalenceChecker"] = None
    preoptimizer: Optional["CircuitPass"] = None
    hadamard_minimizer: Optional["CircuitPass"] = None

    @property
    def timestamp_ms(self) -> int:
        return int(self.started * 1000)

    def for_file(self, index: int, count: int) -> "RunContext":
        """A context whose log lines carry the file's position in the batch."""
        base = self.logger.logger if isinstance(self.logger, logging.LoggerAdapter) else self.logger
        adapter = _PrefixAdapter(base, {"prefix": f"[{index + 1:>2}/{count}]"})
        return dataclasses.replace(self, logger=adapter)

    def check_abort(self) -> None:
        if self.abort.is_set():
            raise CompilationAbortedError("run aborted")
