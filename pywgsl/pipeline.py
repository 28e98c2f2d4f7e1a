"""Pipeline builder — shader module + pipeline layout + compute pipeline."""

import logging
from dataclasses import dataclass

import wgpu

from .buffers import BindGroupLayout, Signature
from .errors import CompileError, LayoutMismatch

logger = logging.getLogger(__name__)


@dataclass
class PipelineArtifact:
    module: object
    bind_group_layout: BindGroupLayout
    pipeline_layout: object
    pipeline: object
    entry_point: str
    source_text: str

    @property
    def signature(self) -> Signature:
        return self.bind_group_layout.signature

    def matches(self, source_text: str, entry_point: str, signature: Signature) -> bool:
        return (self.source_text == source_text
                and self.entry_point == entry_point
                and self.signature == signature)


class PipelineBuilder:

    def __init__(self, device, label: str = "pywgsl"):
        self.device = device
        self.label = label

    def compile(self, source_text: str, entry_point: str, layout: BindGroupLayout,
                signature: Signature) -> PipelineArtifact:
        """Build a fresh artifact; ``signature`` is the current buffer set."""
        if layout.signature != signature:
            raise LayoutMismatch(
                f"Layout covers {[s[0] for s in layout.signature]} but the registered "
                f"inputs are {[s[0] for s in signature]}"
            )
        try:
            module = self.device.create_shader_module(
                label=f"{self.label} module", code=source_text
            )
            pipeline_layout = self.device.create_pipeline_layout(
                label=f"{self.label} layout", bind_group_layouts=list(layout.handles)
            )
            pipeline = self.device.create_compute_pipeline(
                label=self.label,
                layout=pipeline_layout,
                compute={"module": module, "entry_point": entry_point},
            )
        except wgpu.GPUError as e:
            raise CompileError(f"Building pipeline '{self.label}' failed: {e}") from e

        logger.info("built pipeline %s (entry point %s)", self.label, entry_point)
        return PipelineArtifact(module=module, bind_group_layout=layout,
                                pipeline_layout=pipeline_layout, pipeline=pipeline,
                                entry_point=entry_point, source_text=source_text)
