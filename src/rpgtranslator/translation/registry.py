"""Registry of translatable fields per document schema.

Defines which entry fields contain player-visible strings that should be
translated, with the semantic label and content class used for prompting.
"""

from __future__ import annotations

from dataclasses import dataclass

from rpgtranslator.models import ContentClass


@dataclass(frozen=True)
class FieldSpec:
    context: str  # Semantic label handed to the backend as context
    content_class: ContentClass


@dataclass(frozen=True)
class ResourceSchema:
    """A document type laid out as ``[null, {id, ...}, {id, ...}, ...]``."""

    name: str
    fields: dict[str, FieldSpec]

    def is_translatable(self, field: str) -> bool:
        return field in self.fields


# Actors.json: player characters.
# Non-text fields (battlerName, characterName, faceName, classId, equips,
# traits, levels...) are asset references or numbers and never translated.
ACTORS = ResourceSchema(
    name="actors",
    fields={
        "name": FieldSpec("Actor Name", ContentClass.name),
        "nickname": FieldSpec("Actor Title", ContentClass.name),
        "profile": FieldSpec("Actor Profile", ContentClass.dialogue),
        "note": FieldSpec("Actor Notes", ContentClass.general),
    },
)

_SCHEMAS: dict[str, ResourceSchema] = {
    ACTORS.name: ACTORS,
}


def get_schema(name: str) -> ResourceSchema:
    """Look up a schema by name. Raises KeyError for unsupported types."""
    try:
        return _SCHEMAS[name.lower()]
    except KeyError:
        raise KeyError(f"Unsupported document schema: {name}") from None


def is_translatable(field: str, schema: ResourceSchema = ACTORS) -> bool:
    """Check if an entry field should be translated."""
    return schema.is_translatable(field)
