"""Command dispatcher — encode, submit, copy to staging, read back."""

import logging
from typing import Dict, List, Sequence, Tuple, Union

import numpy as np
import wgpu

from .buffers import BufferManager
from .pipeline import PipelineArtifact
from .types import numpy_dtype

logger = logging.getLogger(__name__)

WorkgroupCounts = Union[int, Sequence[int]]


def normalize_counts(counts: WorkgroupCounts) -> Tuple[int, ...]:
    dims = (counts,) if isinstance(counts, int) else tuple(counts)
    if not 1 <= len(dims) <= 3:
        raise ValueError(f"Dispatch needs 1 to 3 workgroup counts, got {len(dims)}")
    for d in dims:
        if isinstance(d, bool) or not isinstance(d, int) or d < 1:
            raise ValueError(f"Workgroup counts must be positive integers, got {d!r}")
    return dims


class CommandDispatcher:

    def __init__(self, device, buffers: BufferManager, label: str = "pywgsl"):
        self.device = device
        self.buffers = buffers
        self.label = label
        self._submitted = False

    def execute(self, artifact: PipelineArtifact, bind_groups: List[object],
                workgroup_counts: WorkgroupCounts = 1):
        counts = normalize_counts(workgroup_counts)

        encoder = self.device.create_command_encoder(label=f"{self.label} encoder")
        compute_pass = encoder.begin_compute_pass(label=f"{self.label} pass")
        compute_pass.set_pipeline(artifact.pipeline)
        for index, bind_group in enumerate(bind_groups):
            compute_pass.set_bind_group(index, bind_group)
        compute_pass.dispatch_workgroups(*counts)
        compute_pass.end()

        # The shader writes its inputs in place; outputs are staging copies.
        for out in self.buffers.outputs():
            source = self.buffers.input(out.linked_input)
            encoder.copy_buffer_to_buffer(source.buffer, 0, out.buffer, 0, source.size)

        self.device.queue.submit([encoder.finish()])
        self._submitted = True
        logger.info("dispatched %s with workgroups %s", artifact.entry_point, counts)

    def _check_submitted(self):
        if not self._submitted:
            raise RuntimeError("Nothing has been dispatched yet; call execute() first")

    def read_back(self) -> Dict[str, np.ndarray]:
        self._check_submitted()
        results = {}
        for out in self.buffers.outputs():
            out.buffer.map_sync(wgpu.MapMode.READ)
            try:
                data = out.buffer.read_mapped()
                results[out.name] = np.frombuffer(data, dtype=numpy_dtype(out.element_type)).copy()
            finally:
                out.buffer.unmap()
        return results

    async def read_back_async(self) -> Dict[str, np.ndarray]:
        self._check_submitted()
        results = {}
        for out in self.buffers.outputs():
            await out.buffer.map_async(wgpu.MapMode.READ)
            try:
                data = out.buffer.read_mapped()
                results[out.name] = np.frombuffer(data, dtype=numpy_dtype(out.element_type)).copy()
            finally:
                out.buffer.unmap()
        return results
