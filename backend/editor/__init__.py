"""Client-side document editor: state store and debounced sync engine."""

from editor.ids import PersistedId, TemporaryId, as_field_id, new_temporary_id
from editor.models import EditorState, Field, FieldType, Page, Recipient
from editor.store import ChangeOrigin, EditorStore
from editor.sync import SyncEngine, SyncError

__all__ = [
    'ChangeOrigin',
    'EditorState',
    'EditorStore',
    'Field',
    'FieldType',
    'Page',
    'PersistedId',
    'Recipient',
    'SyncEngine',
    'SyncError',
    'TemporaryId',
    'as_field_id',
    'new_temporary_id',
]
