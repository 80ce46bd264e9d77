"""Extract translatable strings from a parsed data document."""

from __future__ import annotations

from rpgtranslator.core.document import ResourceDocument
from rpgtranslator.models import TranslationUnit


def extract_units(document: ResourceDocument) -> list[TranslationUnit]:
    """Walk the entries and emit one unit per non-empty translatable field.

    Entries are visited in array order starting at index 1, and fields in
    the schema's table order, so the result is deterministic. Empty strings
    carry nothing to translate and are skipped; so are fields missing from
    the table and non-string values.
    """
    results: list[TranslationUnit] = []
    schema = document.schema

    for _, entry in document.entries():
        entry_id = entry.get("id")
        # id 0 is the editor's placeholder, never a real entry
        if not isinstance(entry_id, int) or isinstance(entry_id, bool) or entry_id <= 0:
            continue

        for field_name, spec in schema.fields.items():
            value = entry.get(field_name)
            if not isinstance(value, str) or value == "":
                continue
            results.append(
                TranslationUnit(
                    resource_id=str(entry_id),
                    field=field_name,
                    source=value,
                    context=spec.context,
                    content_class=spec.content_class,
                    file=document.path,
                    section=schema.name,
                )
            )

    return results
