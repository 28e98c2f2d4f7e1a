"""WGSL type descriptors — scalars, fixed-size arrays and host dtype mapping."""

import re
from dataclasses import dataclass
from typing import Dict, Union

import numpy as np

from .errors import UnsupportedType


SCALAR_KINDS = ("f32", "i32", "u32")


@dataclass(frozen=True)
class Scalar:
    kind: str = "f32"

    def __post_init__(self):
        if self.kind not in SCALAR_KINDS:
            raise UnsupportedType(f"Unsupported scalar type '{self.kind}'")

    def __str__(self):
        return self.kind


@dataclass(frozen=True)
class Array:
    """Fixed-size WGSL array.

    ``length`` comes from a textual heuristic (commas in the literal + 1),
    not from the runtime length of any host value.
    """

    element: Scalar
    length: int

    def __post_init__(self):
        if self.length < 1:
            raise UnsupportedType(f"Array length must be positive, got {self.length}")

    def __str__(self):
        return f"array<{self.element},{self.length}>"


TypeDescriptor = Union[Scalar, Array]
VariableTypeMap = Dict[str, TypeDescriptor]

F32 = Scalar("f32")
U32 = Scalar("u32")

_ARRAY_RE = re.compile(r"^array\s*<\s*(\w+)\s*,\s*(\d+)\s*>$")


def parse_type(text: Union[str, Scalar, Array]) -> TypeDescriptor:
    """Parse ``f32`` / ``i32`` / ``u32`` / ``array<T,N>`` into a descriptor."""
    if isinstance(text, (Scalar, Array)):
        return text
    if not isinstance(text, str):
        raise UnsupportedType(f"Type must be a string, got {type(text).__name__}")
    stripped = text.strip()
    if stripped in SCALAR_KINDS:
        return Scalar(stripped)
    m = _ARRAY_RE.match(stripped)
    if m and m.group(1) in SCALAR_KINDS:
        return Array(Scalar(m.group(1)), int(m.group(2)))
    raise UnsupportedType(f"Unsupported type '{text}'")


# ── host data ────────────────────────────────────────────────────────────

_HOST_KINDS = {
    np.dtype(np.float32): "f32",
    np.dtype(np.int32): "i32",
    np.dtype(np.uint32): "u32",
}


def host_element_type(data) -> Scalar:
    """Element type word for a host buffer; only 32-bit numpy arrays qualify."""
    if not isinstance(data, np.ndarray):
        raise UnsupportedType(
            f"Host data must be a numpy array, got {type(data).__name__}"
        )
    kind = _HOST_KINDS.get(data.dtype)
    if kind is None:
        raise UnsupportedType(
            f"Unsupported host dtype '{data.dtype}' "
            "(expected float32, int32 or uint32)"
        )
    return Scalar(kind)


def numpy_dtype(element: Scalar) -> np.dtype:
    for dtype, kind in _HOST_KINDS.items():
        if kind == element.kind:
            return dtype
    raise UnsupportedType(f"No host dtype for '{element}'")
