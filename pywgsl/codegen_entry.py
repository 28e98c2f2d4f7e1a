"""Entry-point generator — emits the ``@compute`` function of a shader.

Convention:
  - exactly one function per shader is the entry point
  - its declaration gains ``@builtin(global_invocation_id) id: vec3<u32>``
  - ``@workgroup_size`` is the product of up to three size components
"""

from typing import List, Optional, Sequence, Tuple, Union

from .codegen_base import FunctionCodeGenerator
from .tokenizer import Tokenizer
from .types import VariableTypeMap


INVOCATION_ID = "@builtin(global_invocation_id) id: vec3<u32>"

WorkgroupSize = Union[int, Sequence[int]]


def normalize_workgroup_size(size: WorkgroupSize) -> Tuple[int, int, int]:
    """Pad to three components; missing ones default to 1."""
    dims = [size] if isinstance(size, int) else list(size)
    if not 1 <= len(dims) <= 3:
        raise ValueError(f"Workgroup size needs 1 to 3 components, got {len(dims)}")
    for d in dims:
        if isinstance(d, bool) or not isinstance(d, int) or d < 1:
            raise ValueError(f"Workgroup size components must be positive integers, got {d!r}")
    dims += [1] * (3 - len(dims))
    return dims[0], dims[1], dims[2]


class EntryPointGenerator(FunctionCodeGenerator):

    def __init__(self, types: VariableTypeMap, workgroup_size: WorkgroupSize = 1,
                 replay: bool = False, legacy: bool = False,
                 tokenizer: Optional[Tokenizer] = None):
        super().__init__(types, return_type=None, replay=replay, legacy=legacy,
                         tokenizer=tokenizer)
        x, y, z = normalize_workgroup_size(workgroup_size)
        self.workgroup_size = x * y * z

    def _param_list(self, params: List[str]) -> List[str]:
        return super()._param_list(params) + [INVOCATION_ID]

    def _declaration_head(self, name: str, params: List[str]) -> str:
        return (f"@compute @workgroup_size({self.workgroup_size}) "
                f"fn {name}({', '.join(self._param_list(params))})")
