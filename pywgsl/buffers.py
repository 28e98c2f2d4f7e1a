"""Buffer/binding manager — device buffers, binding indices, bind groups.

Inputs are read-write storage buffers bound to the shader. Outputs are
map-read staging buffers: after each dispatch the linked input's contents
are copied into them so the host can read the result back.

Binding indices are assigned in registration order across all groups. Each
group index from 0 up to the highest one in use gets its own bind-group
layout and bind group; groups without inputs get empty ones.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np
import wgpu

from .errors import DeviceUnavailable, LayoutMismatch, UnknownLink
from .shader import binding_declaration
from .types import Scalar, host_element_type

logger = logging.getLogger(__name__)

INPUT = "input"
OUTPUT = "output"

INPUT_USAGE = wgpu.BufferUsage.STORAGE | wgpu.BufferUsage.COPY_DST | wgpu.BufferUsage.COPY_SRC
OUTPUT_USAGE = wgpu.BufferUsage.MAP_READ | wgpu.BufferUsage.COPY_DST

Signature = Tuple[Tuple[str, int, int], ...]


@dataclass
class BufferBinding:
    name: str
    role: str
    element_type: Scalar
    size: int
    group: int = 0
    binding: Optional[int] = None
    linked_input: Optional[str] = None
    buffer: object = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class BindGroupLayout:
    handles: Tuple[object, ...]
    signature: Signature


class BufferManager:

    def __init__(self, device=None, label: str = "pywgsl"):
        self.device = device
        self.label = label
        self._inputs: Dict[str, BufferBinding] = {}
        self._outputs: Dict[str, BufferBinding] = {}
        self._next_binding = 0

    # ── registry views ───────────────────────────────────────────────────

    def inputs(self) -> List[BufferBinding]:
        return list(self._inputs.values())

    def outputs(self) -> List[BufferBinding]:
        return list(self._outputs.values())

    def input(self, name: str) -> BufferBinding:
        try:
            return self._inputs[name]
        except KeyError:
            raise UnknownLink(f"No input buffer named '{name}'") from None

    def signature(self) -> Signature:
        return tuple((b.name, b.group, b.binding) for b in self._inputs.values())

    def header_lines(self) -> List[str]:
        return [binding_declaration(b.group, b.binding, b.name, b.element_type)
                for b in self._inputs.values()]

    # ── registration ─────────────────────────────────────────────────────

    def _check_name(self, name: str):
        if name in self._inputs or name in self._outputs:
            raise ValueError(f"Buffer '{name}' is already registered")

    def _require_device(self):
        if self.device is None:
            raise DeviceUnavailable("No device is bound to this session")

    def register_input(self, name: str, host_data, group: int = 0) -> BufferBinding:
        element = host_element_type(host_data)
        self._check_name(name)
        if host_data.nbytes == 0:
            raise ValueError(f"Input '{name}' is empty")
        if isinstance(group, bool) or not isinstance(group, int) or group < 0:
            raise ValueError(
                f"Group of input '{name}' must be a non-negative integer, got {group!r}"
            )
        self._require_device()

        data = np.ascontiguousarray(host_data)
        buffer = self.device.create_buffer(label=name, size=data.nbytes, usage=INPUT_USAGE)
        self.device.queue.write_buffer(buffer, 0, data)

        binding = BufferBinding(name=name, role=INPUT, element_type=element,
                                size=data.nbytes, group=group,
                                binding=self._next_binding, buffer=buffer)
        self._next_binding += 1
        self._inputs[name] = binding
        logger.debug("input %s -> @group(%d) @binding(%d) array<%s> (%d bytes)",
                     name, group, binding.binding, element, binding.size)
        return binding

    def register_output(self, name: str, linked_input: str, host_data_for_sizing) -> BufferBinding:
        if linked_input not in self._inputs:
            raise UnknownLink(
                f"Output '{name}' links to '{linked_input}', which is not a registered input"
            )
        self._check_name(name)
        source = self._inputs[linked_input]
        size = np.asarray(host_data_for_sizing).nbytes
        if size < source.size:
            raise ValueError(
                f"Output '{name}' holds {size} bytes but input '{linked_input}' "
                f"copies {source.size}"
            )
        self._require_device()

        buffer = self.device.create_buffer(label=name, size=size, usage=OUTPUT_USAGE)
        binding = BufferBinding(name=name, role=OUTPUT, element_type=source.element_type,
                                size=size, linked_input=linked_input, buffer=buffer)
        self._outputs[name] = binding
        logger.debug("output %s <- %s (%d bytes)", name, linked_input, size)
        return binding

    # ── bind groups ──────────────────────────────────────────────────────

    def groups(self) -> List[int]:
        """Group indices 0..max; groups without inputs get empty layouts."""
        top = max((b.group for b in self._inputs.values()), default=0)
        return list(range(top + 1))

    def _group_inputs(self, group: int) -> List[BufferBinding]:
        return [b for b in self._inputs.values() if b.group == group]

    def build_bind_group_layout(self) -> BindGroupLayout:
        self._require_device()
        handles = []
        for group in self.groups():
            entries = [
                {
                    "binding": b.binding,
                    "visibility": wgpu.ShaderStage.COMPUTE,
                    "buffer": {"type": wgpu.BufferBindingType.storage},
                }
                for b in self._group_inputs(group)
            ]
            handles.append(self.device.create_bind_group_layout(
                label=f"{self.label} bind group layout {group}", entries=entries
            ))
        return BindGroupLayout(handles=tuple(handles), signature=self.signature())

    def build_bind_group(self, layout: BindGroupLayout) -> List[object]:
        """One bind group per layout handle, in group order."""
        if layout.signature != self.signature():
            raise LayoutMismatch(
                "Bind group layout was built for a different buffer set; rebuild it"
            )
        bind_groups = []
        for group, handle in zip(self.groups(), layout.handles):
            entries = [
                {
                    "binding": b.binding,
                    "resource": {"buffer": b.buffer, "offset": 0, "size": b.size},
                }
                for b in self._group_inputs(group)
            ]
            bind_groups.append(self.device.create_bind_group(
                label=f"{self.label} bind group {group}", layout=handle, entries=entries
            ))
        return bind_groups

    def release(self):
        for b in list(self._inputs.values()) + list(self._outputs.values()):
            if b.buffer is not None:
                b.buffer.destroy()
                b.buffer = None
