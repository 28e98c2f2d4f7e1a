"""Type inference for function parameters.

Two sources of parameter types:
  - a declared-type table supplied by the caller (positional or by name)
  - the legacy call-site heuristic: numbers are f32 scalars, anything else is
    an f32 array whose length is the comma count of its text form plus one
"""

import numbers
from typing import List, Mapping, Optional, Sequence, Union

from .errors import MalformedSource, UnsupportedType
from .types import Array, F32, TypeDescriptor, VariableTypeMap, parse_type


DeclaredTypes = Union[Sequence[Union[str, TypeDescriptor]],
                      Mapping[str, Union[str, TypeDescriptor]]]


def _is_number_text(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def infer_argument_type(arg) -> TypeDescriptor:
    if isinstance(arg, numbers.Number) and not isinstance(arg, bool):
        return F32
    text = arg if isinstance(arg, str) else repr(arg)
    if isinstance(arg, str) and _is_number_text(text):
        return F32
    # Textual length, independent of how many elements the value really has.
    return Array(F32, text.count(",") + 1)


def infer_call_site_types(args: Sequence) -> List[TypeDescriptor]:
    return [infer_argument_type(a) for a in args]


def resolve_param_types(params: List[str],
                        declared: Optional[DeclaredTypes] = None,
                        args: Optional[Sequence] = None) -> VariableTypeMap:
    """Build the parameter part of a function's type map, in parameter order."""
    if declared is not None and args is not None:
        raise ValueError("Pass either declared parameter types or call-site args, not both")

    if isinstance(declared, str):
        raise UnsupportedType(
            f"Declared parameter types must be a list or a dict, got the string {declared!r}"
        )

    if args is not None:
        types = infer_call_site_types(args)
    elif declared is None:
        types = [F32] * len(params)
    elif isinstance(declared, Mapping):
        missing = [p for p in params if p not in declared]
        if missing:
            raise MalformedSource(f"No declared type for parameter(s): {', '.join(missing)}")
        extra = [k for k in declared if k not in params]
        if extra:
            raise MalformedSource(f"Declared types for unknown parameter(s): {', '.join(extra)}")
        types = [parse_type(declared[p]) for p in params]
    else:
        types = [parse_type(t) for t in declared]

    if len(types) != len(params):
        raise MalformedSource(
            f"Function declares {len(params)} parameter(s) but "
            f"{len(types)} type(s) were supplied"
        )
    return dict(zip(params, types))
