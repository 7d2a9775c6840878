"""
Structural operations over a document's pages.

Every function takes a tuple of pages and returns a new tuple. When the
operation has nothing to do (unknown page number, unknown field id) the
input tuple is returned unchanged so observers comparing by identity see
no change.
"""

from __future__ import annotations

from dataclasses import fields as dataclass_fields, replace
import logging
from typing import Any, Mapping

from editor.ids import FieldId, PersistedId, TemporaryId, new_temporary_id, new_temporary_page_id
from editor.models import Field, FieldType, Page

logger = logging.getLogger(__name__)

Pages = tuple[Page, ...]

DUPLICATE_OFFSET = 20.0

IMMUTABLE_FIELD_ATTRS = frozenset({'id', 'page_id'})

FIELD_ATTRS = frozenset(f.name for f in dataclass_fields(Field))


def _find_page_index(pages: Pages, page_number: int) -> int | None:
    for index, page in enumerate(pages):
        if page.page_number == page_number:
            return index
    return None


def _find_field_index(page: Page, field_id: FieldId) -> int | None:
    for index, field in enumerate(page.fields):
        if field.id == field_id:
            return index
    return None


def _replace_page(pages: Pages, index: int, page: Page) -> Pages:
    return pages[:index] + (page,) + pages[index + 1:]


def _coerce(key: str, value: Any) -> Any:
    """Normalize an update value; raises TypeError or ValueError if it cannot apply."""
    if key == 'type':
        return FieldType(value)
    if key == 'options':
        if value is None:
            return None
        if isinstance(value, (str, bytes)):
            raise TypeError('options must be a sequence of strings')
        return tuple(str(option) for option in value)
    if key in ('x', 'y', 'width', 'height'):
        return float(value)
    return value


def _renumber(pages: Pages) -> Pages:
    """Renumber pages to 1..N, reusing page objects whose number is already right."""
    renumbered = tuple(
        page if page.page_number == position else replace(page, page_number=position)
        for position, page in enumerate(pages, start=1)
    )
    if all(a is b for a, b in zip(renumbered, pages)):
        return pages
    return renumbered


def add_field(pages: Pages, page_number: int, field: Field) -> Pages:
    index = _find_page_index(pages, page_number)
    if index is None:
        logger.debug(f"add_field ignored: page {page_number} not found")
        return pages
    page = pages[index]
    field = replace(field, page_id=page.id) if field.page_id != page.id else field
    return _replace_page(pages, index, replace(page, fields=page.fields + (field,)))


def update_field(pages: Pages, page_number: int, field_id: FieldId, updates: Mapping[str, Any]) -> Pages:
    """
    Merge ``updates`` into the matching field.

    ``id`` and ``page_id`` cannot be changed this way. Keys naming them are
    dropped with a debug log, as are unknown keys and values that do not fit
    the attribute (an unknown ``type``, ``options`` given as a string). Returns the input when
    the field is missing or nothing differs.
    """
    index = _find_page_index(pages, page_number)
    if index is None:
        logger.debug(f"update_field ignored: page {page_number} not found")
        return pages
    page = pages[index]
    field_index = _find_field_index(page, field_id)
    if field_index is None:
        logger.debug(f"update_field ignored: field {field_id} not on page {page_number}")
        return pages

    field = page.fields[field_index]
    changes = {}
    for key, value in updates.items():
        if key in IMMUTABLE_FIELD_ATTRS or key not in FIELD_ATTRS:
            logger.debug(f"update_field ignored key {key!r} for field {field_id}")
            continue
        try:
            value = _coerce(key, value)
        except (TypeError, ValueError):
            logger.debug(f"update_field ignored invalid {key}={value!r} for field {field_id}")
            continue
        if getattr(field, key) != value:
            changes[key] = value
    if not changes:
        return pages

    fields = page.fields[:field_index] + (replace(field, **changes),) + page.fields[field_index + 1:]
    return _replace_page(pages, index, replace(page, fields=fields))


def delete_field(pages: Pages, page_number: int, field_id: FieldId) -> Pages:
    index = _find_page_index(pages, page_number)
    if index is None:
        return pages
    page = pages[index]
    field_index = _find_field_index(page, field_id)
    if field_index is None:
        logger.debug(f"delete_field ignored: field {field_id} not on page {page_number}")
        return pages
    fields = page.fields[:field_index] + page.fields[field_index + 1:]
    return _replace_page(pages, index, replace(page, fields=fields))


def duplicate_field(pages: Pages, page_number: int, field_id: FieldId) -> tuple[Pages, TemporaryId | None]:
    """
    Clone a field onto the same page, offset by DUPLICATE_OFFSET on both axes.

    Returns:
        The new pages and the clone's temporary id, or the input pages and
        None when the field was not found.
    """
    index = _find_page_index(pages, page_number)
    if index is None:
        return pages, None
    page = pages[index]
    field_index = _find_field_index(page, field_id)
    if field_index is None:
        logger.debug(f"duplicate_field ignored: field {field_id} not on page {page_number}")
        return pages, None

    source = page.fields[field_index]
    clone = replace(
        source,
        id=new_temporary_id(),
        x=source.x + DUPLICATE_OFFSET,
        y=source.y + DUPLICATE_OFFSET,
    )
    return _replace_page(pages, index, replace(page, fields=page.fields + (clone,))), clone.id


def add_page(pages: Pages, after_page_number: int, new_page: Page) -> Pages:
    """Insert ``new_page`` after ``after_page_number``, or append if no such page."""
    index = _find_page_index(pages, after_page_number)
    insert_at = len(pages) if index is None else index + 1
    return _renumber(pages[:insert_at] + (new_page,) + pages[insert_at:])


def duplicate_page(pages: Pages, page_number: int) -> Pages:
    """Clone a page and its fields (fresh temporary ids) right after the source."""
    index = _find_page_index(pages, page_number)
    if index is None:
        logger.debug(f"duplicate_page ignored: page {page_number} not found")
        return pages
    source = pages[index]
    page_id = new_temporary_page_id()
    clone = replace(
        source,
        id=page_id,
        fields=tuple(replace(f, id=new_temporary_id(), page_id=page_id) for f in source.fields),
    )
    return _renumber(pages[:index + 1] + (clone,) + pages[index + 1:])


def delete_page(pages: Pages, page_number: int) -> Pages:
    index = _find_page_index(pages, page_number)
    if index is None:
        logger.debug(f"delete_page ignored: page {page_number} not found")
        return pages
    return _renumber(pages[:index] + pages[index + 1:])


def find_field(pages: Pages, field_id: FieldId) -> Field | None:
    for page in pages:
        for field in page.fields:
            if field.id == field_id:
                return field
    return None


def remap_field_ids(pages: Pages, mappings: Mapping[str, str]) -> Pages:
    """
    Replace temporary field ids with the persisted ids the server assigned.

    ``mappings`` is keyed by the wire form of the temporary id
    (``temp_<token>``). Pages and fields without a mapped id are reused
    as-is; if nothing maps, the input tuple is returned.
    """
    if not mappings:
        return pages

    changed = False
    remapped_pages = []
    for page in pages:
        fields = []
        page_changed = False
        for field in page.fields:
            persisted = mappings.get(str(field.id)) if isinstance(field.id, TemporaryId) else None
            if persisted is not None:
                field = replace(field, id=PersistedId(str(persisted)))
                page_changed = True
            fields.append(field)
        if page_changed:
            page = replace(page, fields=tuple(fields))
            changed = True
        remapped_pages.append(page)

    return tuple(remapped_pages) if changed else pages
