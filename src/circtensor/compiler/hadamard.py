# src/circtensor/compiler/hadamard.py
"""
Hadamard gadgets and the block-split search.

A Hadamard inside a non-Clifford block is replaced by a gadget on a fresh
ancilla ``a``::

    H(q)  ->  SWAP(a, q) CZ(a, q)

with ``H(a)`` added to the front and back Clifford blocks, so the ancilla is
prepared in |0> and post-selected on |0>. Merging a
(non-Clifford, Clifford, non-Clifford) triple of blocks into one block costs
one ancilla per Hadamard of the triple; the split search decides which
triples to merge.
"""
from __future__ import annotations

import logging
import math
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from circtensor.circuits import Circuit, Gate, GateKind
from circtensor.compiler.context import CompileConfig, RunContext
from circtensor.compiler.partition import extract_cliffords
from circtensor.exceptions import CapacityExceededError

logger = logging.getLogger(__name__)

Span = Tuple[int, int]

# Trials handed to the process pool per round; abort and early stop are
# checked between rounds.
_TRIALS_PER_WORKER = 64


def interior_hadamard_count(circuit: Circuit) -> int:
    """Hadamards left once the Clifford gates at both ends are peeled off."""
    inner = circuit.copy()
    extract_cliffords(inner)
    return inner.hadamard_count()


class AncillaAllocator:
    """Hands out fresh qubit indices starting at ``first``."""

    def __init__(self, first: int):
        self.next_id = first
        self.allocated: List[int] = []

    def allocate(self) -> int:
        q = self.next_id
        self.next_id += 1
        self.allocated.append(q)
        return q


def gadgetize_hadamards(
    block: Circuit,
    allocator: AncillaAllocator,
    front: Circuit,
    back: Circuit,
) -> List[int]:
    """Replace every Hadamard of ``block`` with an ancilla gadget.

    Returns
    -------
    List[int]
        The ancillas used, one per Hadamard, in block order.
    """
    gates: List[Gate] = []
    used: List[int] = []
    for gate in block.gates:
        if gate.kind is not GateKind.H:
            gates.append(gate)
            continue
        q = gate.qubits[0]
        a = allocator.allocate()
        gates.append(Gate.swap(a, q))
        gates.append(Gate.cz(a, q))
        front.append(Gate.h(a))
        back.append(Gate.h(a))
        used.append(a)
    block.gates = []
    block.extend(gates)
    return used


# =============================================================================
# Split search
# =============================================================================

@dataclass(frozen=True)
class SplitCandidate:
    """One way of merging blocks.

    Attributes
    ----------
    spans : Tuple[Span, ...]
        Half-open ranges of original blocks forming each new block. Even
        positions are non-Clifford blocks.
    hadamards : Tuple[int, ...]
        Hadamards inside each new block.
    """
    spans: Tuple[Span, ...]
    hadamards: Tuple[int, ...]

    @classmethod
    def unmerged(cls, hadamards: Sequence[int]) -> "SplitCandidate":
        return cls(
            spans=tuple((i, i + 1) for i in range(len(hadamards))),
            hadamards=tuple(hadamards),
        )

    @property
    def num_blocks(self) -> int:
        """Number of non-Clifford blocks."""
        return (len(self.spans) + 1) // 2

    @property
    def ancilla(self) -> int:
        return sum(self.hadamards[0::2])

    @property
    def max_block_ancilla(self) -> int:
        return max(self.hadamards[0::2], default=0)

    def cost(self) -> Tuple:
        """Ordering key; smaller is better and ties end at the spans."""
        return (self.num_blocks, self.ancilla, self.max_block_ancilla, self.spans)


def run_trial(hadamards: Sequence[int], budget: float, seed: np.random.SeedSequence) -> SplitCandidate:
    """One randomized greedy merge pass.

    Boundaries (Clifford blocks) are visited in random order and the first
    mergeable triple is merged; this repeats until no triple fits the budget.
    """
    rng = np.random.default_rng(seed)
    run = [[h, i, i + 1] for i, h in enumerate(hadamards)]
    while True:
        n = (len(run) - 1) // 2
        order = list(range(1, 2 * n, 2))
        rng.shuffle(order)
        for i in order:
            if run[i - 1][0] + run[i][0] + run[i + 1][0] <= budget:
                middle = run.pop(i)
                right = run.pop(i)
                run[i - 1][0] += middle[0] + right[0]
                run[i - 1][2] = right[2]
                break
        else:
            break
    return SplitCandidate(
        spans=tuple((a, b) for _, a, b in run),
        hadamards=tuple(h for h, _, _ in run),
    )


def _run_trials(args: Tuple[Sequence[int], float, List[np.random.SeedSequence]]) -> List[SplitCandidate]:
    hadamards, budget, seeds = args
    return [run_trial(hadamards, budget, s) for s in seeds]


def _trial_rounds(
    hadamards: Sequence[int],
    budget: float,
    seeds: List[np.random.SeedSequence],
    workers: int,
) -> Iterator[List[SplitCandidate]]:
    if workers <= 1:
        for s in seeds:
            yield [run_trial(hadamards, budget, s)]
        return

    round_size = workers * _TRIALS_PER_WORKER
    with ProcessPoolExecutor(max_workers=workers) as pool:
        for start in range(0, len(seeds), round_size):
            chunk = seeds[start:start + round_size]
            jobs = [
                (hadamards, budget, chunk[w::workers])
                for w in range(workers)
                if chunk[w::workers]
            ]
            yield [c for batch in pool.map(_run_trials, jobs) for c in batch]


def split_budget(num_qubits: int, config: CompileConfig) -> float:
    """Ancillas allowed per block under the qubit and ancilla caps.

    Raises
    ------
    CapacityExceededError
        If the circuit alone is wider than the qubit cap.
    """
    budget = math.inf
    if config.ancilla is not None:
        budget = min(budget, config.ancilla)
    if config.qubits is not None:
        if num_qubits > config.qubits:
            raise CapacityExceededError(
                f"circuit has {num_qubits} qubits, more than the cap of {config.qubits}"
            )
        budget = min(budget, config.qubits - num_qubits)
    return budget


def search_splits(
    hadamards: Sequence[int],
    budget: float,
    config: CompileConfig,
    ctx: RunContext,
) -> SplitCandidate:
    """Pick which blocks to merge.

    Runs ``config.split_iters`` independent trials, each with its own
    random stream spawned from the run seed, and keeps the candidate with
    the smallest :meth:`SplitCandidate.cost` among those meeting
    ``config.max_blocks``. The result does not depend on ``config.workers``.

    Raises
    ------
    CapacityExceededError
        If no candidate meets the block cap.
    CompilationAbortedError
        If the context's abort event is set during the search.
    """
    max_blocks = config.max_blocks if config.max_blocks is not None else math.inf
    baseline = SplitCandidate.unmerged(hadamards)
    best: Optional[SplitCandidate] = baseline if baseline.num_blocks <= max_blocks else None

    if len(hadamards) <= 1 or config.split_iters == 0:
        if best is None:
            raise CapacityExceededError(
                f"{baseline.num_blocks} non-Clifford blocks exceed the cap of {config.max_blocks}"
            )
        return best

    seed = np.random.SeedSequence(ctx.seed)
    if ctx.seed is None:
        ctx.logger.info("Split search seeded with entropy %d", seed.entropy)
    seeds = seed.spawn(config.split_iters)

    trials = 0
    stopped_early = False
    rounds = _trial_rounds(hadamards, budget, seeds, config.workers)
    try:
        for batch in rounds:
            ctx.check_abort()
            for candidate in batch:
                trials += 1
                if candidate.num_blocks > max_blocks:
                    continue
                if best is None or candidate.cost() < best.cost():
                    best = candidate
            if best is not None and best.num_blocks == 1:
                stopped_early = True
                break
    finally:
        rounds.close()

    if best is None:
        raise CapacityExceededError(
            f"no split reaches {config.max_blocks} non-Clifford block(s) "
            f"with at most {budget} ancilla per block"
        )
    if not stopped_early and best == baseline and len(hadamards) >= 3:
        ctx.logger.warning(
            "Split search ran %d trials without improving on the unmerged split", trials
        )
    ctx.logger.debug(
        "Split search picked %d block(s) using %d ancilla after %d trials",
        best.num_blocks, best.ancilla, trials,
    )
    return best
