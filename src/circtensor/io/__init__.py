# src/circtensor/io/__init__.py
"""
File formats for tensors, matrices, mappings and run logs.

Usage
-----
>>> from circtensor.io import output_path, save_array, load_matrix
>>> save_array(block.tensor.tensor, output_path("adder.qasm", ".block1.tensor.npy"))
"""

from .files import (
    load_mapping,
    load_matrix,
    load_tensor,
    output_path,
    save_array,
    save_mapping,
)
from .logfile import RunLog, log_path, read_run_log, summarize, write_run_log

__all__ = [
    "load_mapping",
    "load_matrix",
    "load_tensor",
    "output_path",
    "save_array",
    "save_mapping",
    "RunLog",
    "log_path",
    "read_run_log",
    "summarize",
    "write_run_log",
]
