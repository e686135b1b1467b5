# src/circtensor/io/files.py
"""
Reading and writing tensors, decomposition matrices and qubit mappings.

Tensors and matrices are stored as ``.npy`` files of 0/1 integers so that
external decomposers can read them without knowing about GF(2). Mappings are
JSON lists.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from circtensor.exceptions import (
    MalformedDecompositionError,
    MappingMismatchError,
    TensorMismatchError,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def output_path(source: PathLike, suffix: str, out_dir: Optional[PathLike] = None) -> Path:
    """``<out_dir>/<stem><suffix>`` for an input file, e.g. ``c.block1.tensor.npy``.

    Without ``out_dir`` the file goes next to ``source``.
    """
    source = Path(source)
    directory = Path(out_dir) if out_dir is not None else source.parent
    return directory / f"{source.stem}{suffix}"


def save_array(array: np.ndarray, path: PathLike) -> Path:
    """Save a boolean array as 0/1 ``uint8``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.save(path, np.asarray(array).astype(np.uint8))
    logger.debug("Wrote %s with shape %s", path, np.shape(array))
    return path


def load_matrix(path: PathLike) -> np.ndarray:
    """Load a decomposition matrix.

    Entries are kept as integers; validation to 0/1 happens when the matrix
    is turned into a decomposition.

    Raises
    ------
    MalformedDecompositionError
        If the file is unreadable or does not hold a 2-D array.
    """
    try:
        matrix = np.load(Path(path), allow_pickle=False)
    except (OSError, ValueError) as e:
        raise MalformedDecompositionError(f"cannot read matrix {path}: {e}") from e
    if matrix.ndim != 2:
        raise MalformedDecompositionError(
            f"{path} holds an array of shape {matrix.shape}, expected a matrix"
        )
    return matrix


def load_tensor(path: PathLike) -> np.ndarray:
    """Load a signature tensor as a boolean array.

    Raises
    ------
    TensorMismatchError
        If the file is unreadable.
    """
    try:
        tensor = np.load(Path(path), allow_pickle=False)
    except (OSError, ValueError) as e:
        raise TensorMismatchError(f"cannot read tensor {path}: {e}") from e
    return tensor.astype(bool)


def save_mapping(mapping: List[int], path: PathLike) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([int(q) for q in mapping]) + "\n")
    return path


def load_mapping(path: PathLike) -> List[int]:
    """Load a JSON list of qubit indices.

    Raises
    ------
    MappingMismatchError
        If the file is not a JSON list of integers.
    """
    try:
        data = json.loads(Path(path).read_text())
    except (OSError, ValueError) as e:
        raise MappingMismatchError(f"cannot read mapping {path}: {e}") from e
    if not isinstance(data, list) or not all(
        isinstance(q, int) and not isinstance(q, bool) for q in data
    ):
        raise MappingMismatchError(f"{path} is not a JSON list of qubit indices")
    return data
