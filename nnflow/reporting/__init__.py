"""Reporting utilities for nnflow."""

from .artifacts import read_parameters, write_manifest, write_parameters
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter

__all__ = [
    "write_manifest",
    "write_parameters",
    "read_parameters",
    "JsonlSink",
    "CsvSink",
    "PlotAdapter",
]
