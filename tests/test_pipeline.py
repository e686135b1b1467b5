"""
End-to-end tests of the compile pipeline.

Validates that:
1. A Hadamard-free circuit becomes one non-Clifford block whose tensor and
   mapping match its T parities.
2. Compiled circuits (blocks merged, ancillas post-selected) implement the
   input, and every verified stage reports EQUAL.
3. Block and qubit caps are honoured or reported.
4. Collaborator passes run and are verified as their own stages.
"""
import numpy as np
import pytest

from circtensor.circuits import Circuit, Gate, qasm
from circtensor.collaborators import CircuitPass, UnitaryChecker
from circtensor.compiler import (
    BlockStats,
    CliffordBlock,
    CompileConfig,
    NonCliffordBlock,
    RunContext,
    compile_circuit,
    compile_file,
)
from circtensor.exceptions import CapacityExceededError, CompilationAbortedError
from circtensor.testing import (
    CheckLog,
    STATUS_OK,
    assert_equivalent,
    exact_checker,
    random_circuit,
)


def _staircase() -> Circuit:
    return Circuit([
        Gate.t(0), Gate.cnot(0, 1), Gate.t(1), Gate.cnot(1, 2), Gate.t(2),
    ])


def _make_ctx(seed: int = 1) -> RunContext:
    return RunContext(seed=seed, checker=exact_checker())


class _CopyPass(CircuitPass):
    name = "copy"

    def __init__(self):
        self.calls = 0

    def run(self, circuit: Circuit) -> Circuit:
        self.calls += 1
        return circuit.copy()


class _CancelHadamardPairs(CircuitPass):
    """Drops two Hadamards in a row on the same qubit."""

    name = "hh"

    def run(self, circuit: Circuit) -> Circuit:
        gates = []
        for gate in circuit.gates:
            if gates and gate.is_hadamard and gates[-1] == gate:
                gates.pop()
            else:
                gates.append(gate)
        return Circuit(gates, circuit.num_qubits)


# ============================================================================
# Test: single block
# ============================================================================

class TestSingleBlock:
    """Hadamard-free circuits."""

    def test_staircase_layout(self):
        compiled = compile_circuit(_staircase(), ctx=_make_ctx())
        assert len(compiled.blocks) == 3
        assert isinstance(compiled.blocks[0], CliffordBlock)
        assert isinstance(compiled.blocks[1], NonCliffordBlock)
        assert isinstance(compiled.blocks[2], CliffordBlock)

    def test_staircase_tensor(self):
        block = compile_circuit(_staircase(), ctx=_make_ctx()).non_clifford_blocks()[0]
        assert block.mapping == [0, 1, 2]
        expected = np.array([[1, 1, 1], [0, 1, 1], [0, 0, 1]], dtype=bool)
        assert np.array_equal(block.matrix, expected)
        assert block.tensor.tensor.shape == (3, 3, 3)

    def test_staircase_stats(self):
        compiled = compile_circuit(_staircase(), ctx=_make_ctx())
        assert compiled.stats.tcount.initial == 3
        assert compiled.stats.blocks == [BlockStats(qubits=3, terms=3)]
        assert compiled.ancillas == []

    def test_block_is_t_gadgets_only(self):
        """The Clifford remainder and the CNOTs move to the next block."""
        compiled = compile_circuit(_staircase(), ctx=_make_ctx())
        block = compiled.non_clifford_blocks()[0]
        assert block.circuit.tcount() == 3
        assert_equivalent(_staircase(), compiled.merge(), 3)

    def test_clifford_remainder_moved(self):
        circuit = Circuit([Gate.phase_gate(3, 0), Gate.cnot(0, 1), Gate.t(1)])
        compiled = compile_circuit(circuit, ctx=_make_ctx())
        block = compiled.non_clifford_blocks()[0]
        assert block.circuit.tcount() == 2
        assert Gate.s(0) in compiled.blocks[2].circuit.gates
        assert_equivalent(circuit, compiled.merge(), 2)

    def test_x_gates_moved_out(self):
        circuit = Circuit([Gate.x(0), Gate.t(0), Gate.cnot(0, 1), Gate.t(1)])
        compiled = compile_circuit(circuit, ctx=_make_ctx())
        assert_equivalent(circuit, compiled.merge(), 2)

    def test_block_with_hadamard_kept_with_diagnostic(self, monkeypatch, caplog):
        """A block the gadgetizer left alone fails on its own; the rest compile."""
        monkeypatch.setattr(
            "circtensor.compiler.pipeline.gadgetize_hadamards", lambda *args: [],
        )
        circuit = Circuit([Gate.t(0), Gate.h(0), Gate.t(0), Gate.h(0), Gate.t(0)])
        with caplog.at_level("WARNING", logger="circtensor"):
            compiled = compile_circuit(
                circuit, CompileConfig(ancilla=1, split_iters=200), _make_ctx()
            )

        blocks = compiled.non_clifford_blocks()
        assert len(blocks) == 2
        failed = [b for b in blocks if b.diagnostic]
        assert len(failed) == 1
        assert failed[0].tensor is None
        assert any(g.is_hadamard for g in failed[0].circuit)
        assert "unsupported gate H(0)" in failed[0].diagnostic
        assert "left out of tensor extraction" in caplog.text

        compiled_block = next(b for b in blocks if not b.diagnostic)
        assert compiled_block.tensor is not None
        assert compiled.stats.blocks == [BlockStats(qubits=1, terms=1)]
        assert_equivalent(circuit, compiled.merge(), 1)

    def test_clifford_circuit_has_no_blocks(self):
        circuit = Circuit([Gate.h(0), Gate.cnot(0, 1), Gate.s(1)])
        compiled = compile_circuit(circuit, ctx=_make_ctx())
        assert len(compiled.blocks) == 1
        assert compiled.non_clifford_blocks() == []
        assert_equivalent(circuit, compiled.merge(), 2)


# ============================================================================
# Test: random circuits with verification
# ============================================================================

class TestRandomCircuits:
    """Compiled random circuits implement their input."""

    def test_random_circuits_verify(self):
        rng = np.random.default_rng(2024)
        log = CheckLog()
        config = CompileConfig(verify=True, split_iters=50, ancilla=2)
        ctx = RunContext(seed=1, checker=exact_checker())
        for trial in range(8):
            circuit = random_circuit(rng, qubits=3, gates=20)
            compiled = compile_circuit(circuit, config, ctx)
            assert set(compiled.verification) == {"partition", "resynth"}
            for stage, result in compiled.verification.items():
                assert result.passed, f"trial {trial}, stage {stage}: {result.detail}"
            assert_equivalent(
                circuit, compiled.merge(), 3,
                checker=exact_checker(), log=log, label=f"trial {trial}",
            )
        assert set(log.summary().split()) == {STATUS_OK}

    def test_ancillas_are_fresh_qubits(self):
        rng = np.random.default_rng(5)
        for _ in range(5):
            circuit = random_circuit(rng, qubits=3, gates=30)
            compiled = compile_circuit(circuit, CompileConfig(split_iters=20), _make_ctx())
            assert all(a >= 3 for a in compiled.ancillas)
            assert len(set(compiled.ancillas)) == len(compiled.ancillas)
            assert compiled.stats.ancilla == len(compiled.ancillas)

    def test_same_seed_same_blocks(self):
        circuit = random_circuit(np.random.default_rng(3), qubits=3, gates=40)
        config = CompileConfig(split_iters=100, ancilla=2)
        a = compile_circuit(circuit, config, _make_ctx(seed=9))
        b = compile_circuit(circuit, config, _make_ctx(seed=9))
        assert [blk.circuit.gates for blk in a.blocks] == [blk.circuit.gates for blk in b.blocks]


# ============================================================================
# Test: caps
# ============================================================================

class TestCaps:
    """Qubit, ancilla and block caps."""

    def test_single_block_uses_ancilla(self):
        circuit = Circuit([Gate.t(0), Gate.h(0), Gate.t(0)])
        compiled = compile_circuit(circuit, CompileConfig(max_blocks=1, split_iters=20), _make_ctx())
        assert compiled.ancillas == [1]
        assert len(compiled.non_clifford_blocks()) == 1
        assert_equivalent(circuit, compiled.merge(), 1, checker=UnitaryChecker())

    def test_no_ancilla_keeps_two_blocks(self):
        circuit = Circuit([Gate.t(0), Gate.h(0), Gate.t(0)])
        compiled = compile_circuit(circuit, CompileConfig(ancilla=0, split_iters=20), _make_ctx())
        assert compiled.ancillas == []
        assert len(compiled.non_clifford_blocks()) == 2

    def test_block_cap_unreachable(self):
        circuit = Circuit([Gate.t(0), Gate.h(0), Gate.t(0)])
        with pytest.raises(CapacityExceededError):
            compile_circuit(circuit, CompileConfig(ancilla=0, max_blocks=1, split_iters=20), _make_ctx())

    def test_qubit_cap_below_circuit(self):
        with pytest.raises(CapacityExceededError):
            compile_circuit(_staircase(), CompileConfig(qubits=2), _make_ctx())

    def test_abort(self):
        circuit = Circuit([Gate.t(0), Gate.h(0), Gate.t(0), Gate.h(0), Gate.t(0)])
        ctx = _make_ctx()
        ctx.abort.set()
        with pytest.raises(CompilationAbortedError):
            compile_circuit(circuit, CompileConfig(split_iters=20), ctx)


# ============================================================================
# Test: collaborators
# ============================================================================

class TestCollaborators:
    """Pre-optimizer and Hadamard minimizer stages."""

    def test_passes_run_and_are_verified(self):
        preopt, hopt = _CopyPass(), _CopyPass()
        ctx = RunContext(seed=1, checker=exact_checker(), preoptimizer=preopt, hadamard_minimizer=hopt)
        compiled = compile_circuit(_staircase(), CompileConfig(verify=True), ctx)
        assert preopt.calls == 1 and hopt.calls == 1
        assert compiled.stats.verification == {
            "preopt": "equal", "hopt": "equal", "partition": "equal", "resynth": "equal",
        }
        assert compiled.stats.tcount.preoptimized == 3

    def test_hadamard_minimizer_reduces_blocks(self):
        circuit = Circuit([Gate.t(0), Gate.h(0), Gate.h(0), Gate.t(0)])
        ctx = RunContext(seed=1, checker=exact_checker(), hadamard_minimizer=_CancelHadamardPairs())
        compiled = compile_circuit(circuit, CompileConfig(verify=True, ancilla=0), ctx)
        assert compiled.stats.hcount.initial == 2
        assert compiled.stats.hcount.optimized == 0
        assert len(compiled.non_clifford_blocks()) == 1
        assert compiled.verification["hopt"].passed

    def test_verification_without_checker_is_skipped(self, caplog):
        with caplog.at_level("WARNING", logger="circtensor"):
            compiled = compile_circuit(_staircase(), CompileConfig(verify=True), RunContext(seed=1))
        assert compiled.verification == {}
        assert "no checker" in caplog.text


# ============================================================================
# Test: files
# ============================================================================

class TestCompileFile:

    def test_compile_qasm_file(self, tmp_path):
        path = qasm.dump(_staircase(), tmp_path / "stair.qasm")
        compiled = compile_file(path, ctx=_make_ctx())
        assert compiled.stats.path.endswith("stair.qasm")
        assert compiled.stats.qubits == 3
        assert compiled.non_clifford_blocks()[0].mapping == [0, 1, 2]
