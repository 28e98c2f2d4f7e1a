"""Shader assembler — binding header, helper functions, entry point."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from .transcript import TranscriptStore


def binding_declaration(group: int, binding: int, name: str, element) -> str:
    return (f"@group({group}) @binding({binding}) "
            f"var<storage, read_write> {name} : array<{element}>;")


@dataclass
class ShaderSource:
    header: List[str] = field(default_factory=list)
    functions: List[str] = field(default_factory=list)
    entry_point: Optional[str] = None

    @property
    def text(self) -> str:
        parts = list(self.header) + list(self.functions)
        if self.entry_point is not None:
            parts.append(self.entry_point)
        return "\n".join(parts) + "\n"

    def __str__(self):
        return self.text


def assemble(header: List[str], store: "TranscriptStore",
             bodies: Dict[str, str]) -> ShaderSource:
    """Order bodies as the store does: helpers by translation order, entry last."""
    entry = store.entry
    return ShaderSource(
        header=list(header),
        functions=[bodies[t.name] for t in store.helpers()],
        entry_point=bodies[entry.name] if entry is not None else None,
    )
