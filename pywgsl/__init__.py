"""pywgsl — translate restricted kernel functions to WGSL and run them with wgpu."""

from .errors import (
    CompileError,
    DeviceUnavailable,
    LayoutMismatch,
    MalformedSource,
    PyWGSLError,
    UnknownLink,
    UnknownVariable,
    UnsupportedType,
)
from .session import Session, SessionConfig
from .shader import ShaderSource
from .tokenizer import Tokenizer
from .types import Array, Scalar, parse_type

__all__ = [
    "Array",
    "CompileError",
    "DeviceUnavailable",
    "LayoutMismatch",
    "MalformedSource",
    "PyWGSLError",
    "Scalar",
    "Session",
    "SessionConfig",
    "ShaderSource",
    "Tokenizer",
    "UnknownLink",
    "UnknownVariable",
    "UnsupportedType",
    "parse_type",
]
