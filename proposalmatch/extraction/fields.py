"""
fields.py - Declarative field specs that drive structured extraction.

A FieldSet names the parser's role, the kind of document it reads, and the
exact fields to return. The same FieldSet builds the system prompt and
normalizes the model's JSON back into typed values, so the prompt and the
parser can never disagree about which fields exist.
"""
from dataclasses import dataclass, field


@dataclass(frozen=True)
class FieldSpec:
    """
    name:        wire name the model must use as the JSON key (camelCase).
    description: one-line instruction shown to the model.
    many:        True for array fields (default []), False for scalars (default null).
    choices:     closed enumeration; empty tuple means free text.
    """
    name: str
    description: str
    many: bool = False
    choices: tuple[str, ...] = ()


@dataclass(frozen=True)
class FieldSet:
    role: str          # e.g. "a non-profit organization profile parser"
    source: str        # e.g. "proposal/document text"
    fields: tuple[FieldSpec, ...] = field(default_factory=tuple)

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.fields]
