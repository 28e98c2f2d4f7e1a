"""Function transcripts — stored token lines and type maps for regeneration.

A transcript is recorded the first time a function is translated. After
that the function is never tokenized or inferred again: regeneration replays
the stored lines against the (possibly edited) type map.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .codegen_base import FunctionCodeGenerator
from .codegen_entry import EntryPointGenerator
from .errors import UnknownVariable
from .shader import ShaderSource, assemble
from .tokenizer import TokenLine, Tokenizer
from .types import F32, TypeDescriptor, VariableTypeMap, parse_type

logger = logging.getLogger(__name__)

RETURN_KEY = "return"


@dataclass
class FunctionTranscript:
    name: str
    lines: List[TokenLine]
    types: VariableTypeMap
    return_type: Optional[TypeDescriptor] = F32
    is_entry: bool = False
    workgroup_size: Tuple[int, int, int] = (1, 1, 1)

    def generator(self, replay: bool = True, legacy: bool = False,
                  tokenizer: Optional[Tokenizer] = None) -> FunctionCodeGenerator:
        if self.is_entry:
            return EntryPointGenerator(self.types, self.workgroup_size, replay=replay,
                                       legacy=legacy, tokenizer=tokenizer)
        return FunctionCodeGenerator(self.types, self.return_type, replay=replay,
                                     legacy=legacy, tokenizer=tokenizer)

    def translate(self, replay: bool = True, legacy: bool = False,
                  tokenizer: Optional[Tokenizer] = None) -> str:
        gen = self.generator(replay=replay, legacy=legacy, tokenizer=tokenizer)
        return "\n".join(gen.generate(self.lines))


class TranscriptStore:

    def __init__(self):
        self._transcripts: Dict[str, FunctionTranscript] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._transcripts

    def __iter__(self) -> Iterator[FunctionTranscript]:
        return iter(self._transcripts.values())

    def __len__(self) -> int:
        return len(self._transcripts)

    def names(self) -> List[str]:
        return list(self._transcripts)

    def get(self, name: str) -> FunctionTranscript:
        try:
            return self._transcripts[name]
        except KeyError:
            raise UnknownVariable(f"Unknown function '{name}'") from None

    @property
    def entry(self) -> Optional[FunctionTranscript]:
        for t in self._transcripts.values():
            if t.is_entry:
                return t
        return None

    def helpers(self) -> List[FunctionTranscript]:
        return [t for t in self._transcripts.values() if not t.is_entry]

    def record(self, transcript: FunctionTranscript):
        if transcript.name in self._transcripts:
            raise ValueError(f"Function '{transcript.name}' was already translated")
        if transcript.is_entry and self.entry is not None:
            raise ValueError(
                f"Entry point already defined ('{self.entry.name}'); "
                "only one entry point per shader"
            )
        self._transcripts[transcript.name] = transcript

    # ── edits ────────────────────────────────────────────────────────────

    def edit(self, name: str, variable: str, new_type) -> bool:
        """Change one existing entry; returns True if the type changed."""
        transcript = self.get(name)
        typ = parse_type(new_type)
        if variable == RETURN_KEY and not transcript.is_entry:
            changed = transcript.return_type != typ
            transcript.return_type = typ
            return changed
        if variable not in transcript.types:
            raise UnknownVariable(f"Function '{name}' has no variable '{variable}'")
        changed = transcript.types[variable] != typ
        transcript.types[variable] = typ
        return changed

    # ── regeneration ─────────────────────────────────────────────────────

    def replay(self, legacy: bool = False,
               tokenizer: Optional[Tokenizer] = None) -> Dict[str, str]:
        bodies = {}
        for t in self._transcripts.values():
            bodies[t.name] = t.translate(replay=True, legacy=legacy, tokenizer=tokenizer)
            logger.debug("regenerated %s:\n%s", t.name, bodies[t.name])
        return bodies

    def regenerate(self, header: List[str], legacy: bool = False,
                   tokenizer: Optional[Tokenizer] = None) -> ShaderSource:
        return assemble(header, self, self.replay(legacy=legacy, tokenizer=tokenizer))
