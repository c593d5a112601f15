"""Summarise dispatch and result materialization for file-backed tables."""

from .config import StoreOptions
from .core.errors import (
    DegradedOutputWarning,
    InvalidMethodSelectorError,
    MethodFallbackWarning,
    SummariseError,
    UnexpectedWorkerOutputError,
    UnknownFunctionError,
    UnsupportedExpressionError,
)
from .core.functions import register_function, unregister_function
from .core.materialize import UNSPECIFIED, MaterializedOutput, OutputTarget
from .core.methods import Method, select_method
from .core.storage import (
    DistributedFileSystem,
    NativeFileSystem,
    StorageLocation,
    XdfTable,
    as_xdf,
    open_xdf,
)
from .core.summarise import summarise, summarize

__version__ = "0.1.0"

__all__ = [
    "DegradedOutputWarning",
    "DistributedFileSystem",
    "InvalidMethodSelectorError",
    "MaterializedOutput",
    "Method",
    "MethodFallbackWarning",
    "NativeFileSystem",
    "OutputTarget",
    "StorageLocation",
    "StoreOptions",
    "SummariseError",
    "UNSPECIFIED",
    "UnexpectedWorkerOutputError",
    "UnknownFunctionError",
    "UnsupportedExpressionError",
    "XdfTable",
    "as_xdf",
    "open_xdf",
    "register_function",
    "select_method",
    "summarise",
    "summarize",
    "unregister_function",
]
