"""
Tests for output files, run logs and the command line interface.

Validates that:
1. Matrices, tensors and mappings round-trip through their files and bad
   files raise the matching error.
2. ``compile`` writes per-block files, isolates failing inputs and records
   every file in the run log.
3. ``resynth`` reads the files ``compile`` wrote and writes a circuit.
4. ``verify`` reports equivalence through its exit status.
"""
import json
from pathlib import Path

import numpy as np
import pytest

from circtensor.circuits import Circuit, Gate, qasm, qc
from circtensor.cli import build_parser, main
from circtensor.compiler import CompileFileStats
from circtensor.exceptions import (
    CircuitParseError,
    MalformedDecompositionError,
    MappingMismatchError,
    TensorMismatchError,
)
from circtensor.io import (
    RunLog,
    load_mapping,
    load_matrix,
    load_tensor,
    output_path,
    read_run_log,
    save_array,
    save_mapping,
    summarize,
    write_run_log,
)


def _staircase() -> Circuit:
    return Circuit([
        Gate.t(0), Gate.cnot(0, 1), Gate.t(1), Gate.cnot(1, 2), Gate.t(2),
    ])


def _make_inputs(tmp_path: Path):
    good = qasm.dump(_staircase(), tmp_path / "good.qasm")
    bad = tmp_path / "bad.qasm"
    bad.write_text("OPENQASM 2.0;\nqreg q[1;\n")
    out = tmp_path / "out"
    out.mkdir()
    return good, bad, out


# ============================================================================
# Test: files
# ============================================================================

class TestFiles:
    """Tensor, matrix and mapping files."""

    def test_output_path(self):
        path = output_path("circuits/adder.qasm", ".block1.tensor.npy", "out")
        assert path == Path("out") / "adder.block1.tensor.npy"
        assert output_path("circuits/adder.qasm", ".qc") == Path("circuits") / "adder.qc"

    def test_matrix_round_trip(self, tmp_path):
        matrix = np.array([[1, 0, 1], [0, 1, 1]], dtype=bool)
        path = save_array(matrix, tmp_path / "m.npy")
        loaded = load_matrix(path)
        assert loaded.dtype == np.uint8
        assert np.array_equal(loaded.astype(bool), matrix)

    def test_tensor_loads_as_bool(self, tmp_path):
        tensor = np.zeros((2, 2, 2), dtype=bool)
        tensor[0, 1, 1] = tensor[1, 0, 1] = tensor[1, 1, 0] = True
        path = save_array(tensor, tmp_path / "nested" / "t.npy")
        assert np.array_equal(load_tensor(path), tensor)

    def test_matrix_must_be_2d(self, tmp_path):
        path = save_array(np.ones(3, dtype=bool), tmp_path / "v.npy")
        with pytest.raises(MalformedDecompositionError):
            load_matrix(path)

    def test_unreadable_matrix(self, tmp_path):
        path = tmp_path / "junk.npy"
        path.write_text("not numpy")
        with pytest.raises(MalformedDecompositionError):
            load_matrix(path)
        with pytest.raises(MalformedDecompositionError):
            load_matrix(tmp_path / "missing.npy")

    def test_mapping_round_trip(self, tmp_path):
        path = save_mapping([0, 3, 4], tmp_path / "m.txt")
        assert load_mapping(path) == [0, 3, 4]

    @pytest.mark.parametrize("text", ["[0, 1", '["a"]', "[true]", '{"0": 1}'])
    def test_bad_mapping(self, tmp_path, text):
        path = tmp_path / "m.txt"
        path.write_text(text)
        with pytest.raises(MappingMismatchError):
            load_mapping(path)


class TestRunLog:
    """Run logs and the end-of-run summary."""

    def test_write_and_read(self, tmp_path):
        log = RunLog(command="compile", argv=["compile", "out", "a.qasm"], timestamp_ms=1234, seed=5)
        log.add(CompileFileStats(path="/x/a.qasm", qubits=3))
        log.add(CompileFileStats(path="/x/b.qasm", error="bad input"))
        path = write_run_log(log, tmp_path)
        assert path.name == "run_1234.log"

        data = read_run_log(path)
        assert data["invocation"]["seed"] == 5
        assert data["invocation"]["command"] == "compile"
        assert len(data["files"]) == 2
        assert log.failures == 1

    def test_summary_lines(self):
        files = [
            CompileFileStats(path="/x/a.qasm", ancilla=2).to_dict(),
            CompileFileStats(path="/x/b.qasm", error="boom").to_dict(),
            {"path": "/x/m.npy", "nccz": 1, "ncs": 0, "nt": 2},
        ]
        lines = summarize(files).splitlines()
        assert lines[0].startswith("a.qasm: 0 block(s), 2 ancilla")
        assert lines[1] == "b.qasm: FAILED (boom)"
        assert lines[2] == "m.npy: T-count 9"


# ============================================================================
# Test: command line
# ============================================================================

class TestCompileCommand:
    """``circtensor compile``."""

    def test_parser_defaults(self):
        args = build_parser().parse_args(["compile", ".", "a.qasm"])
        assert args.emit == ["circuit-qasm", "matrix", "tensor", "verify"]
        assert args.qubits is None and args.workers == 1

    def test_unknown_emit_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["compile", "-e", "pictures", ".", "a.qasm"])

    def test_batch_keeps_going_after_failure(self, tmp_path):
        good, bad, out = _make_inputs(tmp_path)
        status = main([
            "-q", "compile", "-e", "circuit-qasm,matrix,tensor,block-qc,log",
            "--seed", "1", str(out), str(good), str(bad),
        ])
        assert status == 1

        assert (out / "good.hopt.qasm").is_file()
        assert (out / "good.block1.cnotphase.qc").is_file()
        assert load_mapping(out / "good.block1.mapping.txt") == [0, 1, 2]
        assert load_matrix(out / "good.block1.matrix.npy").shape == (3, 3)
        assert load_tensor(out / "good.block1.tensor.npy").shape == (3, 3, 3)
        assert not list(out.glob("bad.*"))

        logs = list(out.glob("run_*.log"))
        assert len(logs) == 1
        data = json.loads(logs[0].read_text())
        assert data["invocation"]["seed"] == 1
        good_stats, bad_stats = data["files"]
        assert good_stats["error"] is None
        assert good_stats["blocks"] == [{"qubits": 3, "terms": 3}]
        assert bad_stats["error"]

    def test_missing_files_only(self, tmp_path):
        assert main(["-q", "compile", str(tmp_path), str(tmp_path / "nope.qasm")]) == 2


class TestResynthCommand:
    """``circtensor resynth`` on compile output."""

    def test_round_trip_through_files(self, tmp_path):
        good, _, out = _make_inputs(tmp_path)
        assert main(["-q", "compile", "-e", "matrix", str(out), str(good)]) == 0
        matrix = out / "good.block1.matrix.npy"
        mapping = out / "good.block1.mapping.txt"

        synth = tmp_path / "synth"
        synth.mkdir()
        status = main([
            "-q", "resynth", "-e", "circuit-qasm,circuit-qc,log",
            "-O", str(matrix), "-m", str(mapping), str(synth), str(matrix),
        ])
        assert status == 0
        circuit = qasm.load(synth / "good.block1.matrix.qasm")
        assert circuit.tcount() == 3
        assert (synth / "good.block1.matrix.qc").is_file()
        assert len(list(synth.glob("run_*.log"))) == 1

    def test_mismatched_option_count(self, tmp_path):
        good, _, out = _make_inputs(tmp_path)
        main(["-q", "compile", "-e", "matrix", str(out), str(good)])
        matrix = out / "good.block1.matrix.npy"
        with pytest.raises(SystemExit):
            main(["-q", "resynth", "-O", str(matrix), "-O", str(matrix), str(out), str(matrix)])

    def test_bad_mapping_fails_file(self, tmp_path):
        good, _, out = _make_inputs(tmp_path)
        main(["-q", "compile", "-e", "matrix", str(out), str(good)])
        matrix = out / "good.block1.matrix.npy"
        mapping = tmp_path / "short.txt"
        save_mapping([0, 1], mapping)
        assert main(["-q", "resynth", "-m", str(mapping), str(out), str(matrix)]) == 1


class TestVerifyCommand:
    """``circtensor verify``."""

    def test_equal(self, tmp_path, capsys):
        a = qasm.dump(_staircase(), tmp_path / "a.qasm")
        b = tmp_path / "b.qc"
        b.write_text(qc.dumps(_staircase()))
        assert main(["-q", "verify", str(a), str(b)]) == 0
        assert capsys.readouterr().out.startswith("EQUAL")

    def test_not_equal(self, tmp_path, capsys):
        a = qasm.dump(_staircase(), tmp_path / "a.qasm")
        b = qasm.dump(Circuit([Gate.t(0)], num_qubits=3), tmp_path / "b.qasm")
        assert main(["-q", "verify", "--checker", "phase-polynomial", str(a), str(b)]) == 1
        assert capsys.readouterr().out.startswith("NOT_EQUAL")


# ============================================================================
# Test: undecodable input files
# ============================================================================

class TestUndecodableInputs:
    """Files that are not text fail on their own and never stop a batch."""

    def test_loaders_raise_library_errors(self, tmp_path):
        junk = tmp_path / "junk"
        junk.write_bytes(b"\xff\xfe\x00")
        with pytest.raises(CircuitParseError):
            qasm.load(junk)
        with pytest.raises(CircuitParseError):
            qc.load(junk)
        with pytest.raises(CircuitParseError):
            qasm.load(tmp_path / "missing.qasm")
        with pytest.raises(MappingMismatchError):
            load_mapping(junk)

    def test_unreadable_tensor(self, tmp_path):
        junk = tmp_path / "t.npy"
        junk.write_text("not numpy")
        with pytest.raises(TensorMismatchError):
            load_tensor(junk)
        with pytest.raises(TensorMismatchError):
            load_tensor(tmp_path / "missing.npy")

    def test_compile_batch_continues(self, tmp_path):
        good, _, out = _make_inputs(tmp_path)
        binary = tmp_path / "binary.qasm"
        binary.write_bytes(b"OPENQASM 2.0;\n\xff\n")
        status = main([
            "-q", "compile", "-e", "matrix,log", "--seed", "5", str(out), str(binary), str(good),
        ])
        assert status == 1
        assert (out / "good.block1.matrix.npy").is_file()
        data = json.loads(next(out.glob("run_*.log")).read_text())
        binary_stats, good_stats = data["files"]
        assert binary_stats["error"]
        assert good_stats["error"] is None

    def test_resynth_batch_continues(self, tmp_path):
        good, _, out = _make_inputs(tmp_path)
        main(["-q", "compile", "-e", "matrix", str(out), str(good)])
        first = out / "good.block1.matrix.npy"
        second = save_array(load_matrix(first), out / "other.block1.matrix.npy")
        binary = tmp_path / "binary.map"
        binary.write_bytes(b"\xff[0, 1, 2]")
        mapping = out / "good.block1.mapping.txt"

        synth = tmp_path / "synth"
        synth.mkdir()
        status = main([
            "-q", "resynth", "-e", "circuit-qasm",
            "-m", str(binary), "-m", str(mapping), str(synth), str(first), str(second),
        ])
        assert status == 1
        assert not (synth / "good.block1.matrix.qasm").exists()
        assert qasm.load(synth / "other.block1.matrix.qasm").tcount() == 3
