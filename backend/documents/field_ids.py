"""
Field identifier conventions shared by the sync endpoint and the editor.

Client-created fields carry a temporary id (``temp_<token>``) until the
first successful sync assigns them a persisted id.
"""

TEMP_ID_PREFIX = 'temp_'


def is_temporary_id(field_id):
    return isinstance(field_id, str) and field_id.startswith(TEMP_ID_PREFIX)


def parse_persisted_id(field_id):
    """
    Return the integer primary key encoded by a persisted id, or None.

    Accepts ints and digit strings; anything else (including temporary ids)
    yields None.
    """
    if isinstance(field_id, bool):
        return None
    if isinstance(field_id, int):
        return field_id if field_id > 0 else None
    if isinstance(field_id, str) and field_id.strip().isdigit():
        value = int(field_id.strip())
        return value if value > 0 else None
    return None
