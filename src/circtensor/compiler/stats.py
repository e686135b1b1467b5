# src/circtensor/compiler/stats.py
"""Per-file statistics recorded in run logs."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class TCountStats:
    """T-count of the input (CCZ = 7, CS = 3) and after pre-optimization."""
    initial: int = 0
    preoptimized: Optional[int] = None


@dataclass
class HCountStats:
    """Interior Hadamards before and after Hadamard minimization."""
    initial: int = 0
    optimized: int = 0


@dataclass
class BlockStats:
    qubits: int = 0
    terms: int = 0


@dataclass
class CompileFileStats:
    """Statistics of one compiled circuit.

    Attributes
    ----------
    path : str
        Input file.
    qubits : int
        Register size of the input circuit.
    ancilla : int
        Ancillas added by Hadamard gadgets.
    tcount : TCountStats
    hcount : HCountStats
    blocks : List[BlockStats]
        One entry per non-Clifford block.
    verification : Dict[str, str]
        Verdict per checked stage.
    error : Optional[str]
        Why the file failed, if it did.
    """
    path: str = ""
    qubits: int = 0
    ancilla: int = 0
    tcount: TCountStats = field(default_factory=TCountStats)
    hcount: HCountStats = field(default_factory=HCountStats)
    blocks: List[BlockStats] = field(default_factory=list)
    verification: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ResynthFileStats:
    """Statistics of one resynthesized decomposition."""
    path: str = ""
    mapping: List[int] = field(default_factory=list)
    nccz: int = 0
    ncs: int = 0
    nt: int = 0
    correction: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
