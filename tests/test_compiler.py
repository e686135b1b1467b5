"""
Tests for block splitting, Hadamard gadgets and the split search.

Validates that:
1. partition() produces alternating blocks that merge back to the input.
2. to_cnot_phase() removes X gates and expands two- and three-qubit gates
   without changing the operator.
3. Hadamard gadgets on fresh ancillas reproduce the Hadamard under
   post-selection.
4. The split search is seeded, independent of the worker count, honours
   the caps and can be aborted.
"""
import numpy as np
import pytest

from circtensor.circuits import Circuit, Gate, GateKind
from circtensor.compiler import (
    AncillaAllocator,
    CompileConfig,
    RunContext,
    SplitCandidate,
    extract_cliffords,
    gadgetize_hadamards,
    interior_hadamard_count,
    partition,
    pull_gates,
    run_trial,
    search_splits,
    split_budget,
    to_cnot_phase,
)
from circtensor.exceptions import CapacityExceededError, CompilationAbortedError
from circtensor.testing import assert_equivalent, random_circuit


def _t_h_t() -> Circuit:
    return Circuit([Gate.t(0), Gate.h(0), Gate.t(0)])


# ============================================================================
# Test: partition
# ============================================================================

class TestPartition:
    """Splitting circuits into Clifford and Hadamard-free blocks."""

    def test_pull_gates_respects_frontier(self):
        circuit = Circuit([Gate.t(0), Gate.s(1), Gate.h(0), Gate.h(1)])
        pulled = pull_gates(circuit, lambda g: g.is_clifford)
        assert pulled.gates == [Gate.s(1), Gate.h(1)]
        assert circuit.gates == [Gate.t(0), Gate.h(0)]

    def test_extract_cliffords(self):
        circuit = Circuit([Gate.h(0), Gate.t(0), Gate.cnot(0, 1), Gate.s(1)])
        front, back = extract_cliffords(circuit)
        assert front.gates == [Gate.h(0)]
        assert back.gates == [Gate.cnot(0, 1), Gate.s(1)]
        assert circuit.gates == [Gate.t(0)]

    def test_interior_hadamards(self):
        circuit = Circuit([Gate.h(0), Gate.t(0), Gate.h(0), Gate.t(0), Gate.h(0)])
        assert interior_hadamard_count(circuit) == 1

    def test_merge_reproduces_circuit(self):
        """Blocks only reorder commuting gates."""
        rng = np.random.default_rng(42)
        for _ in range(10):
            circuit = random_circuit(rng, qubits=4, gates=40)
            merged = partition(circuit).merge()
            assert len(merged) == len(circuit)
            assert_equivalent(circuit, merged)

    def test_block_kinds_alternate(self):
        rng = np.random.default_rng(7)
        for _ in range(10):
            parts = partition(random_circuit(rng, qubits=3, gates=30))
            assert parts.front.is_clifford() and parts.back.is_clifford()
            for i, block in enumerate(parts.blocks):
                if i % 2 == 0:
                    assert block.hadamard_count() == 0
                else:
                    assert block.is_clifford()
            assert len(parts.layout()) == len(parts.blocks) + 2

    def test_t_h_t(self):
        parts = partition(_t_h_t())
        assert [len(b) for b in parts.blocks] == [1, 1, 1]
        assert parts.hadamard_counts() == [0, 1, 0]

    def test_merge_spans(self):
        parts = partition(_t_h_t())
        parts.merge_spans([(0, 3)])
        assert len(parts.blocks) == 1
        assert parts.blocks[0].gates == _t_h_t().gates


class TestCnotPhase:
    """Rewriting Hadamard-free blocks into CNOT+phase form."""

    def test_x_pushed_through(self):
        block = Circuit([Gate.x(0), Gate.cnot(0, 1), Gate.t(1)])
        xs = to_cnot_phase(block)
        assert block.gates == [Gate.cnot(0, 1), Gate.tdg(1)]
        assert xs.gates == [Gate.x(0), Gate.x(1)]

    def test_double_x_cancels(self):
        block = Circuit([Gate.x(0), Gate.t(0), Gate.x(0)])
        xs = to_cnot_phase(block)
        assert len(xs) == 0
        assert block.gates == [Gate.tdg(0)]

    def test_expansion_is_equivalent(self):
        rng = np.random.default_rng(99)
        for _ in range(10):
            circuit = random_circuit(rng, qubits=4, gates=30, p_h=0.0)
            circuit.extend([Gate.swap(0, 3), Gate.x(2), Gate.ccz(1, 2, 3)])
            block = circuit.copy()
            xs = to_cnot_phase(block)
            kinds = {g.kind for g in block}
            assert kinds <= {GateKind.CNOT, GateKind.PHASE}
            assert_equivalent(circuit, block.merge(xs), 4)


# ============================================================================
# Test: Hadamard gadgets
# ============================================================================

class TestHadamardGadget:
    """Replacing interior Hadamards with ancilla gadgets."""

    def test_gadget_shape(self):
        block = _t_h_t()
        front, back = Circuit(num_qubits=1), Circuit(num_qubits=1)
        used = gadgetize_hadamards(block, AncillaAllocator(1), front, back)
        assert used == [1]
        assert block.gates == [Gate.t(0), Gate.swap(1, 0), Gate.cz(1, 0), Gate.t(0)]
        assert front.gates == [Gate.h(1)] and back.gates == [Gate.h(1)]

    def test_gadget_is_equivalent_under_postselection(self):
        original = _t_h_t()
        block = original.copy()
        front, back = Circuit(num_qubits=1), Circuit(num_qubits=1)
        gadgetize_hadamards(block, AncillaAllocator(1), front, back)
        assert_equivalent(original, front.merge(block).merge(back), 1)

    def test_ancillas_are_fresh(self):
        allocator = AncillaAllocator(3)
        block = Circuit([Gate.h(0), Gate.t(1), Gate.h(2)])
        gadgetize_hadamards(block, allocator, Circuit(), Circuit())
        assert allocator.allocated == [3, 4]
        assert allocator.allocate() == 5


# ============================================================================
# Test: split search
# ============================================================================

class TestSplitSearch:
    """Randomized greedy merging of blocks."""

    HADAMARDS = [0, 1, 0, 2, 0, 1, 0, 3, 0]

    def test_candidate_cost(self):
        candidate = SplitCandidate(spans=((0, 3), (3, 4), (4, 5)), hadamards=(1, 2, 3))
        assert candidate.num_blocks == 2
        assert candidate.ancilla == 4
        assert candidate.max_block_ancilla == 3
        assert candidate.cost()[:3] == (2, 4, 3)

    def test_trial_respects_budget(self):
        for seed in range(20):
            result = run_trial(self.HADAMARDS, 2, np.random.SeedSequence(seed))
            assert max(result.hadamards[0::2]) <= 2
            assert result.spans[0][0] == 0 and result.spans[-1][1] == len(self.HADAMARDS)

    def test_trial_is_seeded(self):
        a = run_trial(self.HADAMARDS, 3, np.random.SeedSequence(12))
        b = run_trial(self.HADAMARDS, 3, np.random.SeedSequence(12))
        assert a == b

    def test_unbounded_budget_merges_everything(self):
        best = search_splits(self.HADAMARDS, float("inf"), CompileConfig(split_iters=10), RunContext(seed=0))
        assert best.spans == ((0, len(self.HADAMARDS)),)
        assert best.ancilla == 7

    def test_zero_budget_keeps_blocks(self):
        best = search_splits(self.HADAMARDS, 0, CompileConfig(split_iters=10), RunContext(seed=0))
        assert best == SplitCandidate.unmerged(self.HADAMARDS)

    def test_same_seed_same_choice(self):
        config = CompileConfig(split_iters=200)
        a = search_splits(self.HADAMARDS, 2, config, RunContext(seed=31))
        b = search_splits(self.HADAMARDS, 2, config, RunContext(seed=31))
        assert a == b

    def test_workers_do_not_change_choice(self):
        serial = search_splits(self.HADAMARDS, 2, CompileConfig(split_iters=300), RunContext(seed=8))
        parallel = search_splits(
            self.HADAMARDS, 2, CompileConfig(split_iters=300, workers=2), RunContext(seed=8)
        )
        assert serial == parallel

    def test_max_blocks_unreachable(self):
        """T-H-T with no ancilla cannot become a single block."""
        config = CompileConfig(ancilla=0, max_blocks=1, split_iters=50)
        with pytest.raises(CapacityExceededError):
            search_splits([0, 1, 0], split_budget(1, config), config, RunContext(seed=1))

    def test_max_blocks_reachable(self):
        config = CompileConfig(max_blocks=1, split_iters=50)
        best = search_splits([0, 1, 0], split_budget(1, config), config, RunContext(seed=1))
        assert best.num_blocks == 1

    def test_budget(self):
        assert split_budget(3, CompileConfig()) == float("inf")
        assert split_budget(3, CompileConfig(ancilla=4, qubits=5)) == 2
        with pytest.raises(CapacityExceededError):
            split_budget(6, CompileConfig(qubits=5))

    def test_abort(self):
        ctx = RunContext(seed=0)
        ctx.abort.set()
        with pytest.raises(CompilationAbortedError):
            search_splits(self.HADAMARDS, 2, CompileConfig(split_iters=10), ctx)

    def test_unseeded_search_logs_entropy(self, caplog):
        with caplog.at_level("INFO", logger="circtensor"):
            search_splits(self.HADAMARDS, 2, CompileConfig(split_iters=5), RunContext())
        assert "entropy" in caplog.text

    def test_fruitless_search_warns(self, caplog):
        with caplog.at_level("WARNING", logger="circtensor"):
            best = search_splits([0, 1, 0, 1, 0], 0, CompileConfig(split_iters=5), RunContext(seed=1))
        assert best == SplitCandidate.unmerged([0, 1, 0, 1, 0])
        assert "ran 5 trials without improving on the unmerged split" in caplog.text

    def test_improving_search_does_not_warn(self, caplog):
        with caplog.at_level("WARNING", logger="circtensor"):
            search_splits([0, 1, 0, 1, 0], 1, CompileConfig(split_iters=5), RunContext(seed=1))
        assert "without improving" not in caplog.text
