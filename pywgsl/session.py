"""Session — one translator + GPU resource owner.

Usage:
    from pywgsl import Session
    import numpy as np

    session = Session.create()
    data = np.array([0, -1, -2, -3], dtype=np.float32)
    session.register_input("myBuffer", data)
    session.register_output("result", "myBuffer", data)
    session.add_entry_point('''
    function main_kernel() {
        let i = id.x;
        myBuffer[i] = myBuffer[i] * 2;
    }
    ''')
    print(session.shader_code)
    results = session.run(workgroup_counts=len(data))

Every piece of mutable state (buffers, transcripts, the current pipeline)
belongs to a single Session. Sessions are not thread-safe; serialise calls.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np

from .buffers import BufferBinding, BufferManager
from .codegen_entry import WorkgroupSize, normalize_workgroup_size
from .device import acquire_device, acquire_device_async
from .dispatch import CommandDispatcher, WorkgroupCounts
from .inference import DeclaredTypes, resolve_param_types
from .pipeline import PipelineArtifact, PipelineBuilder
from .shader import ShaderSource, assemble
from .tokenizer import Tokenizer
from .transcript import FunctionTranscript, TranscriptStore
from .types import VariableTypeMap, parse_type

logger = logging.getLogger(__name__)


@dataclass
class SessionConfig:
    label: str = "pywgsl"
    power_preference: str = "high-performance"
    # Reproduce the historical line-rewrite quirks (array literals end the
    # line, switch drops the first parenthesis pair of the line).
    legacy: bool = False


class Session:

    def __init__(self, device=None, config: Optional[SessionConfig] = None,
                 tokenizer: Optional[Tokenizer] = None):
        self.config = config or SessionConfig()
        self.device = device
        self.tokenizer = tokenizer or Tokenizer()
        self.buffers = BufferManager(device, label=self.config.label)
        self.transcripts = TranscriptStore()
        self.builder = PipelineBuilder(device, label=self.config.label)
        self.dispatcher = CommandDispatcher(device, self.buffers, label=self.config.label)
        self._bodies: Dict[str, str] = {}
        self._edited = False
        self._artifact: Optional[PipelineArtifact] = None
        self._bind_groups = None

    @classmethod
    def create(cls, config: Optional[SessionConfig] = None,
               tokenizer: Optional[Tokenizer] = None) -> "Session":
        config = config or SessionConfig()
        return cls(acquire_device(config.power_preference), config, tokenizer)

    @classmethod
    async def create_async(cls, config: Optional[SessionConfig] = None,
                           tokenizer: Optional[Tokenizer] = None) -> "Session":
        config = config or SessionConfig()
        device = await acquire_device_async(config.power_preference)
        return cls(device, config, tokenizer)

    def _invalidate(self):
        self._artifact = None
        self._bind_groups = None

    # ── buffers ──────────────────────────────────────────────────────────

    def register_input(self, name: str, host_data, group: int = 0) -> BufferBinding:
        binding = self.buffers.register_input(name, host_data, group)
        self._invalidate()
        return binding

    def register_output(self, name: str, linked_input: str, host_data_for_sizing) -> BufferBinding:
        binding = self.buffers.register_output(name, linked_input, host_data_for_sizing)
        self._invalidate()
        return binding

    # ── translation ──────────────────────────────────────────────────────

    def _translate(self, source: str, declared: Optional[DeclaredTypes],
                   args: Optional[Sequence], **transcript_fields) -> str:
        lines = self.tokenizer.tokenize(source)
        self.tokenizer.validate(lines)
        name, params = self.tokenizer.parse_declaration(lines[0])
        types = resolve_param_types(params, declared, args)

        transcript = FunctionTranscript(name=name, lines=lines, types=types,
                                        **transcript_fields)
        body = transcript.translate(replay=False, legacy=self.config.legacy,
                                    tokenizer=self.tokenizer)
        self.transcripts.record(transcript)
        self._bodies[name] = body
        self._invalidate()
        logger.debug("translated %s:\n%s", name, body)
        return body

    def add_function(self, source: str, return_type="f32",
                     param_types: Optional[DeclaredTypes] = None,
                     args: Optional[Sequence] = None) -> str:
        """Translate a helper function and return its WGSL text.

        Parameter types come from ``param_types`` (a list in parameter order
        or a dict keyed by name). Passing ``args`` instead infers them from
        call-site values with the legacy heuristic. With neither, every
        parameter is f32.
        """
        return self._translate(source, param_types, args,
                               return_type=parse_type(return_type))

    def add_entry_point(self, source: str, workgroup_size: WorkgroupSize = 1,
                        param_types: Optional[DeclaredTypes] = None) -> str:
        """Translate the ``@compute`` entry function of the shader."""
        if self.transcripts.entry is not None:
            raise ValueError(f"Entry point already defined ('{self.transcripts.entry.name}')")
        return self._translate(source, param_types, None, return_type=None,
                               is_entry=True,
                               workgroup_size=normalize_workgroup_size(workgroup_size))

    @property
    def source(self) -> ShaderSource:
        return assemble(self.buffers.header_lines(), self.transcripts, self._bodies)

    @property
    def shader_code(self) -> str:
        return self.source.text

    # ── correction loop ──────────────────────────────────────────────────

    def list_variables(self, function_name: str) -> VariableTypeMap:
        return dict(self.transcripts.get(function_name).types)

    def submit_edit(self, function_name: str, variable: str, new_type: str) -> bool:
        """Record one type change; returns False when the type was already set."""
        changed = self.transcripts.edit(function_name, variable, new_type)
        if changed:
            self._edited = True
        return changed

    def confirm(self) -> ShaderSource:
        """Regenerate if anything was edited since the last confirm."""
        if self._edited:
            self.regenerate()
            self._edited = False
        else:
            logger.debug("confirm: no edits, shader unchanged")
        return self.source

    def regenerate(self) -> ShaderSource:
        self._bodies = self.transcripts.replay(legacy=self.config.legacy,
                                               tokenizer=self.tokenizer)
        self._invalidate()
        return self.source

    # ── pipeline and dispatch ────────────────────────────────────────────

    def build(self) -> PipelineArtifact:
        entry = self.transcripts.entry
        if entry is None:
            raise ValueError("No entry point; call add_entry_point() first")
        text = self.shader_code
        signature = self.buffers.signature()
        if self._artifact is None or not self._artifact.matches(text, entry.name, signature):
            self._invalidate()
            logger.debug("compiling shader:\n%s", text)
            layout = self.buffers.build_bind_group_layout()
            self._artifact = self.builder.compile(text, entry.name, layout, signature)
        self._bind_groups = self.buffers.build_bind_group(self._artifact.bind_group_layout)
        return self._artifact

    def execute(self, workgroup_counts: WorkgroupCounts = 1):
        if self._artifact is None or self._bind_groups is None:
            self.build()
        self.dispatcher.execute(self._artifact, self._bind_groups, workgroup_counts)

    def read_back(self) -> Dict[str, np.ndarray]:
        return self.dispatcher.read_back()

    async def read_back_async(self) -> Dict[str, np.ndarray]:
        return await self.dispatcher.read_back_async()

    def run(self, workgroup_counts: WorkgroupCounts = 1) -> Dict[str, np.ndarray]:
        self.build()
        self.execute(workgroup_counts)
        return self.read_back()

    def close(self):
        self._invalidate()
        self.buffers.release()
