# src/circtensor/cli.py
"""
Command line interface.

Three subcommands:

- ``circtensor compile OUTPUT FILE...``: split circuits into blocks and
  write per-block signature tensors, matrices, mappings and circuits.
- ``circtensor resynth OUTPUT FILE...``: turn decomposition matrices back
  into circuits.
- ``circtensor verify ORIGINAL NEW``: check two circuits for equivalence.

Every file of a batch is processed independently: a failure is logged and
recorded in the run log, and the batch goes on.
"""
from __future__ import annotations

import argparse
import logging
import signal
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from circtensor import __version__
from circtensor.circuits import qasm, qc
from circtensor.collaborators import (
    EquivalenceChecker,
    ExternalCommandPass,
    FeynverChecker,
    PhasePolynomialChecker,
    StimTableauChecker,
    UnitaryChecker,
    default_checker,
)
from circtensor.compiler import (
    CompileConfig,
    CompiledCircuit,
    CompileFileStats,
    NonCliffordBlock,
    ResynthConfig,
    ResynthFileStats,
    RunContext,
    compile_file,
    load_circuit,
    resynthesize,
)
from circtensor.exceptions import CircuitTensorError
from circtensor.io import (
    RunLog,
    load_mapping,
    load_matrix,
    output_path,
    save_array,
    save_mapping,
    summarize,
    write_run_log,
)

logger = logging.getLogger("circtensor")

COMPILE_OUTPUTS = (
    "circuit-qasm", "circuit-qc", "tensor", "matrix",
    "block-qasm", "block-qc", "verify", "log",
)
RESYNTH_OUTPUTS = ("circuit-qasm", "circuit-qc", "log")

CHECKERS: Dict[str, Callable[[], EquivalenceChecker]] = {
    "auto": default_checker,
    "stim": StimTableauChecker,
    "phase-polynomial": PhasePolynomialChecker,
    "unitary": UnitaryChecker,
    "feynver": FeynverChecker,
}


# =============================================================================
# Argument parsing
# =============================================================================

def _directory(value: str) -> Path:
    path = Path(value)
    if not path.is_dir():
        raise argparse.ArgumentTypeError(f"{value} is not a directory")
    return path


def _emit_list(choices: Sequence[str]) -> Callable[[str], List[str]]:
    def parse(value: str) -> List[str]:
        items = [v.strip() for v in value.split(",") if v.strip()]
        bad = [v for v in items if v not in choices]
        if bad:
            raise argparse.ArgumentTypeError(
                f"unknown output type(s) {', '.join(bad)}; choose from {', '.join(choices)}"
            )
        return items
    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="circtensor",
        description="Compile Clifford+T circuits to signature tensors and back",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Log warnings and errors only")
    sub = parser.add_subparsers(dest="command", required=True)

    comp = sub.add_parser("compile", help="Compile circuits into phase polynomial blocks")
    comp.add_argument("-q", "--qubits", type=int, default=None,
                      help="Limit the number of qubits in each block")
    comp.add_argument("-a", "--ancilla", type=int, default=None,
                      help="Limit the number of ancilla in each block")
    comp.add_argument("-b", "--max-blocks", type=int, default=None,
                      help="Limit the number of non-Clifford blocks")
    comp.add_argument("-e", "--emit", type=_emit_list(COMPILE_OUTPUTS),
                      default=["circuit-qasm", "matrix", "tensor", "verify"],
                      help=f"Comma-separated outputs: {', '.join(COMPILE_OUTPUTS)}")
    comp.add_argument("-z", "--zx-preopt", action="store_true",
                      help="Pre-optimize the circuits with pyzx")
    comp.add_argument("--h-opt-cmd", default=None,
                      help="External Hadamard minimizer, e.g. 'hopt {input} -o {output}'")
    comp.add_argument("-s", "--split-iters", type=int, default=10000,
                      help="Number of trials of the block-split search")
    comp.add_argument("--seed", type=int, default=None, help="Seed of the block-split search")
    comp.add_argument("-j", "--workers", type=int, default=1,
                      help="Worker processes for the block-split search")
    comp.add_argument("--verify", action="store_true",
                      help="Verify the intermediate circuits against the input")
    comp.add_argument("--checker", choices=sorted(CHECKERS), default="auto",
                      help="Equivalence checker used by --verify")
    comp.add_argument("output", type=_directory, help="Directory to place output files")
    comp.add_argument("files", nargs="+", help=".qasm or .qc files to compile")

    res = sub.add_parser("resynth", help="Synthesize circuits from tensor decompositions")
    res.add_argument("-e", "--emit", type=_emit_list(RESYNTH_OUTPUTS), default=["circuit-qasm"],
                     help=f"Comma-separated outputs: {', '.join(RESYNTH_OUTPUTS)}")
    res.add_argument("-g", "--gadgets", action="store_true",
                     help="Enable CCZ and CS gadget synthesis")
    res.add_argument("-O", "--original", action="append", default=[],
                     help="Original decomposition matrix, one per input file")
    res.add_argument("-m", "--mapping", action="append", default=[],
                     help="Qubit mapping file, one per input file")
    res.add_argument("output", type=_directory, help="Directory to place output files")
    res.add_argument("files", nargs="+", help=".npy decomposition matrices")

    ver = sub.add_parser("verify", help="Check two circuits for equivalence")
    ver.add_argument("--checker", choices=sorted(CHECKERS), default="auto")
    ver.add_argument("-n", "--inputs", type=int, default=None,
                     help="Input qubits; higher qubits of NEW are post-selected ancillas")
    ver.add_argument("original", help="Reference circuit (.qasm or .qc)")
    ver.add_argument("new", help="Candidate circuit (.qasm or .qc)")
    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger("qiskit").setLevel(logging.WARNING)
    logging.getLogger("stevedore").setLevel(logging.WARNING)


@contextmanager
def abort_on_sigint(ctx: RunContext) -> Iterator[None]:
    """Turn the first Ctrl-C into an abort of the running file."""
    def handler(signum, frame):
        if ctx.abort.is_set():
            raise KeyboardInterrupt
        logger.warning("Interrupted; aborting the current file (Ctrl-C again to quit)")
        ctx.abort.set()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _existing(files: Sequence[str]) -> List[Path]:
    paths = []
    for f in files:
        path = Path(f)
        if path.is_file():
            paths.append(path)
        else:
            logger.warning("Skipping %s: not a file", f)
    return paths


# =============================================================================
# compile
# =============================================================================

def write_compiled(compiled: CompiledCircuit, source: Path, out: Path, emit: Sequence[str], ctx: RunContext) -> None:
    """Write the outputs selected by ``emit`` for one compiled circuit."""
    def write(suffix: str, text: str, what: str) -> None:
        path = output_path(source, suffix, out)
        path.write_text(text)
        ctx.logger.info("    Wrote %s to: %s", what, path)

    qubits = compiled.num_inputs
    if "circuit-qasm" in emit:
        write(".hopt.qasm", qasm.dumps(compiled.optimized), "optimized circuit")
    if "circuit-qc" in emit:
        write(".hopt.qc", qc.dumps(compiled.optimized, qubits), "optimized circuit")

    if "verify" in emit:
        for stage, result in compiled.verification.items():
            write(f".{stage}.verify.txt", result.detail, f"{stage} verification")

    for j, block in enumerate(compiled.blocks):
        kind = "cnotphase" if isinstance(block, NonCliffordBlock) else "cliffords"
        if "block-qasm" in emit:
            write(f".block{j}.{kind}.qasm", qasm.dumps(block.circuit), "block circuit")
        if "block-qc" in emit:
            write(f".block{j}.{kind}.qc", qc.dumps(block.circuit, qubits), "block circuit")

    for j, block in enumerate(compiled.blocks):
        if not isinstance(block, NonCliffordBlock) or block.tensor is None:
            continue
        if "matrix" in emit:
            path = save_mapping(block.mapping, output_path(source, f".block{j}.mapping.txt", out))
            ctx.logger.info("    Wrote block mapping to: %s", path)
            path = save_array(block.matrix, output_path(source, f".block{j}.matrix.npy", out))
            ctx.logger.info("    Wrote block matrix to: %s", path)
        if "tensor" in emit:
            path = save_array(block.tensor.tensor, output_path(source, f".block{j}.tensor.npy", out))
            ctx.logger.info("    Wrote block tensor to: %s", path)


def _make_checker(name: str) -> EquivalenceChecker:
    return CHECKERS[name]()


def run_compile(args: argparse.Namespace, ctx: RunContext, argv: Sequence[str]) -> int:
    config = CompileConfig(
        qubits=args.qubits,
        ancilla=args.ancilla,
        max_blocks=args.max_blocks,
        split_iters=args.split_iters,
        workers=args.workers,
        zx_preopt=args.zx_preopt,
        verify=args.verify,
    )
    ctx.checker = _make_checker(args.checker)
    if args.h_opt_cmd:
        ctx.hadamard_minimizer = ExternalCommandPass(args.h_opt_cmd.split(), name="h-opt")

    files = _existing(args.files)
    if not files:
        logger.error("None of the input files exist")
        return 2

    log = RunLog(
        command="compile",
        argv=list(argv),
        timestamp_ms=ctx.timestamp_ms,
        seed=ctx.seed,
        options=vars(config),
    )
    count = len(files)
    with logging_redirect_tqdm(), abort_on_sigint(ctx):
        for i, path in enumerate(tqdm(files, desc="compile", unit="file", disable=count < 2)):
            file_ctx = ctx.for_file(i, count)
            ctx.abort.clear()
            try:
                compiled = compile_file(path, config, file_ctx)
                write_compiled(compiled, path, args.output, args.emit, file_ctx)
                stats = compiled.stats
            except CircuitTensorError as e:
                file_ctx.logger.error("  Failed: %s", e)
                stats = CompileFileStats(path=str(path.resolve()), error=str(e))
            log.add(stats)

    return _finish(log, args.output, args.emit)


# =============================================================================
# resynth
# =============================================================================

def _paired(option: str, values: Sequence[str], count: int) -> List[Optional[Path]]:
    if not values:
        return [None] * count
    if len(values) != count:
        raise SystemExit(f"circtensor resynth: error: one {option} file is needed per input file")
    return [Path(v) for v in values]


def run_resynth(args: argparse.Namespace, ctx: RunContext, argv: Sequence[str]) -> int:
    config = ResynthConfig(gadgets=args.gadgets)
    files = _existing(args.files)
    if not files:
        logger.error("None of the input files exist")
        return 2
    originals = _paired("--original", args.original, len(files))
    mappings = _paired("--mapping", args.mapping, len(files))

    log = RunLog(command="resynth", argv=list(argv), timestamp_ms=ctx.timestamp_ms, options=vars(config))
    count = len(files)
    with logging_redirect_tqdm():
        for i, path in enumerate(tqdm(files, desc="resynth", unit="file", disable=count < 2)):
            file_ctx = ctx.for_file(i, count)
            file_ctx.logger.info("Processing: %s", path)
            stats = ResynthFileStats(path=str(path.resolve()))
            try:
                matrix = load_matrix(path)
                original = load_matrix(originals[i]) if originals[i] is not None else None
                mapping = load_mapping(mappings[i]) if mappings[i] is not None else None
                result = resynthesize(matrix, mapping, original, config, file_ctx)
            except CircuitTensorError as e:
                file_ctx.logger.error("  Failed: %s", e)
                stats.error = str(e)
                log.add(stats)
                continue

            stats.mapping = result.mapping
            stats.nccz, stats.ncs, stats.nt = result.nccz, result.ncs, result.nt
            stats.correction = result.correction
            if "circuit-qasm" in args.emit:
                target = output_path(path, ".qasm", args.output)
                target.write_text(qasm.dumps(result.circuit))
                file_ctx.logger.info("    Wrote synthesized circuit to: %s", target)
            if "circuit-qc" in args.emit:
                target = output_path(path, ".qc", args.output)
                target.write_text(qc.dumps(result.circuit))
                file_ctx.logger.info("    Wrote synthesized circuit to: %s", target)
            log.add(stats)

    return _finish(log, args.output, args.emit)


def _finish(log: RunLog, out: Path, emit: Sequence[str]) -> int:
    if "log" in emit:
        path = write_run_log(log, out)
        logger.info("Wrote log file to: %s", path)
    logger.info("%s", summarize(log.files))
    return 1 if log.failures else 0


# =============================================================================
# verify
# =============================================================================

def run_verify(args: argparse.Namespace) -> int:
    try:
        original = load_circuit(args.original)
        new = load_circuit(args.new)
    except CircuitTensorError as e:
        logger.error("%s", e)
        return 2
    inputs = args.inputs if args.inputs is not None else original.num_qubits
    result = _make_checker(args.checker).check(original, new, inputs)
    print(f"{result.verdict.name} ({result.checker})")
    if result.detail:
        print(result.detail)
    return 0 if result.passed else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    ctx = RunContext(logger=logger, seed=getattr(args, "seed", None))
    if args.command == "compile":
        return run_compile(args, ctx, argv)
    if args.command == "resynth":
        return run_resynth(args, ctx, argv)
    return run_verify(args)


if __name__ == "__main__":
    sys.exit(main())
