"""Facade for loading and saving RPG Maker MV data documents."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rpgtranslator.translation.registry import ACTORS, ResourceSchema


@dataclass
class ResourceDocument:
    """A parsed data file: ``content[0]`` is reserved, entries start at 1."""

    path: str
    content: list[Any]
    schema: ResourceSchema = field(default=ACTORS)

    def __post_init__(self) -> None:
        validate_content(self.content, self.path)

    def entries(self) -> list[tuple[int, dict[str, Any]]]:
        """(index, entry) pairs for every real entry, skipping holes."""
        return [
            (i, entry)
            for i, entry in enumerate(self.content)
            if i > 0 and isinstance(entry, dict)
        ]


def validate_content(content: Any, path: str = "") -> None:
    where = f" in {path}" if path else ""
    if not isinstance(content, list):
        raise ValueError(f"Expected a top-level JSON array{where}, got {type(content).__name__}")
    if content and content[0] is not None:
        raise ValueError(f"Index 0 must be null{where}")


def load_document(path: str | Path, schema: ResourceSchema = ACTORS) -> ResourceDocument:
    """Load and parse a data file from disk."""
    path = Path(path)
    text = path.read_text(encoding="utf-8-sig")
    return document_from_text(text, str(path), schema)


def document_from_text(
    text: str, path: str = "", schema: ResourceSchema = ACTORS,
) -> ResourceDocument:
    try:
        content = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Corrupted or truncated JSON document {path}: {e}") from e
    return ResourceDocument(path=path, content=content, schema=schema)


def document_to_text(document: ResourceDocument) -> str:
    """Serialize compactly, the way the editor writes its data files."""
    return json.dumps(document.content, ensure_ascii=False, separators=(",", ":"))


def save_document(document: ResourceDocument, path: str | Path) -> None:
    """Serialize and write a document to disk."""
    path = Path(path)
    path.write_text(document_to_text(document), encoding="utf-8")
