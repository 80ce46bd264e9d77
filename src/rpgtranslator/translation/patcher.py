"""Apply translations back to a data document."""

from __future__ import annotations

import copy
from collections.abc import Iterable

from rpgtranslator.core.document import ResourceDocument
from rpgtranslator.models import TranslationUnit, UnitKey


def apply_translations(
    document: ResourceDocument,
    units: Iterable[TranslationUnit],
) -> tuple[ResourceDocument, int]:
    """Write unit targets into a copy of the document.

    Only the targeted field of the matching entry is replaced; every other
    field, hole and ordering is left exactly as in the source. A
    translatable field the entry lacks is added. The input document is not
    modified. Units sharing a key resolve to the last one given.

    Units are skipped silently when their target is empty, their id does not
    resolve to an entry, their field is not translatable for the schema, or
    they were extracted from another file.

    Returns:
        Tuple of (new_document, number_of_fields_changed).
    """
    content = copy.deepcopy(document.content)
    schema = document.schema

    by_id: dict[int, dict] = {}
    for i, entry in enumerate(content):
        if i > 0 and isinstance(entry, dict) and isinstance(entry.get("id"), int):
            by_id.setdefault(entry["id"], entry)

    latest: dict[UnitKey, TranslationUnit] = {}
    for unit in units:
        if unit.target:
            latest[unit.key] = unit

    patched = 0
    for unit in latest.values():
        if unit.file and document.path and unit.file != document.path:
            continue
        if not schema.is_translatable(unit.field):
            continue
        try:
            entry_id = int(unit.resource_id)
        except ValueError:
            continue
        entry = by_id.get(entry_id)
        if entry is None:
            continue

        if entry.get(unit.field) != unit.target:
            patched += 1
        entry[unit.field] = unit.target

    return ResourceDocument(path=document.path, content=content, schema=schema), patched


def merge_translations(
    document: ResourceDocument,
    units: Iterable[TranslationUnit],
) -> ResourceDocument:
    """Return a copy of ``document`` with every applicable unit target merged in."""
    merged, _ = apply_translations(document, units)
    return merged
