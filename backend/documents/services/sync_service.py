"""
Editor synchronization service.

Responsibilities:
- Reconcile a full client-side page snapshot with persisted storage
- Create fields that still carry temporary ids and report the id mapping
- Apply everything in one transaction within a bounded time budget

The snapshot is the already-validated output of SyncPayloadSerializer:
a list of {page_number, width, height, fields: [...]} dicts.
"""

import logging
import time

from django.conf import settings
from django.db import transaction, connection, OperationalError

from ..exceptions import ConflictError, TransientStorageError, ValidationError
from ..field_ids import is_temporary_id, parse_persisted_id
from .storage import DocumentStorage

logger = logging.getLogger(__name__)


class SyncService:
    """Service for the debounced bulk sync protocol."""

    @staticmethod
    def collect_persisted_ids(pages):
        """
        Ids of every non-temporary field in the snapshot.

        A persisted field is only deleted when it is absent from the whole
        snapshot, so fields that moved to another page number survive.
        """
        return {
            parse_persisted_id(field['id'])
            for page in pages
            for field in page['fields']
            if not is_temporary_id(field['id'])
        }

    @staticmethod
    def build_field_attrs(field, recipients):
        """
        Map one snapshot field onto model attributes.

        Args:
            field: validated field dict
            recipients: dict of recipient pk -> Recipient for the document

        Raises:
            ValidationError: recipientId does not name a recipient of the document
        """
        recipient = None
        recipient_id = field.get('recipient_id')
        if recipient_id not in (None, ''):
            recipient = recipients.get(parse_persisted_id(recipient_id))
            if recipient is None:
                raise ValidationError(f"Unknown recipient {recipient_id} for field {field['id']}")

        return {
            'field_type': field['type'],
            'x': field['x'],
            'y': field['y'],
            'width': field['width'],
            'height': field['height'],
            'required': field.get('required', False),
            'value': field.get('value'),
            'label': field.get('label'),
            'recipient': recipient,
            'properties': {
                'placeholder': field.get('placeholder'),
                'defaultValue': field.get('default_value'),
                'options': field.get('options'),
            },
        }

    @staticmethod
    def _apply_database_timeouts():
        """Bound lock waits and statement time for the current transaction (PostgreSQL)."""
        if connection.vendor != 'postgresql':
            return
        max_wait_ms = int(settings.SYNC_TRANSACTION_MAX_WAIT * 1000)
        timeout_ms = int(settings.SYNC_TRANSACTION_TIMEOUT * 1000)
        with connection.cursor() as cursor:
            cursor.execute(f"SET LOCAL lock_timeout = {max_wait_ms}")
            cursor.execute(f"SET LOCAL statement_timeout = {timeout_ms}")

    @staticmethod
    def _check_budget(started_at):
        elapsed = time.monotonic() - started_at
        if elapsed > settings.SYNC_TRANSACTION_TIMEOUT:
            raise TransientStorageError(
                f"Sync exceeded its {settings.SYNC_TRANSACTION_TIMEOUT:g}s budget"
            )

    @staticmethod
    def sync_document(document, pages):
        """
        Reconcile persisted pages and fields with the client snapshot.

        Per page: upsert by page number, delete fields missing from the
        snapshot, create temporary-id fields, update persisted ones. Pages
        whose number is no longer in the snapshot are removed last.

        Args:
            document: Document instance (already scoped to the caller)
            pages: validated snapshot

        Returns:
            dict: temporary id -> persisted id (as strings)

        Raises:
            ConflictError: document is no longer a draft
            ValidationError / NotFoundError: snapshot references bad ids
            TransientStorageError: timeout or aborted transaction
        """
        if not document.is_draft:
            raise ConflictError('Only draft documents can be edited')

        started_at = time.monotonic()
        field_id_mappings = {}
        keep_ids = SyncService.collect_persisted_ids(pages)
        created = updated = deleted = 0

        try:
            with transaction.atomic():
                SyncService._apply_database_timeouts()
                recipients = {r.pk: r for r in document.recipients.all()}

                for page in pages:
                    db_page = DocumentStorage.upsert_page(
                        document, page['page_number'], page['width'], page['height']
                    )
                    deleted += DocumentStorage.delete_fields_not_in(db_page, keep_ids)

                    for field in page['fields']:
                        attrs = SyncService.build_field_attrs(field, recipients)
                        if is_temporary_id(field['id']):
                            new_field = DocumentStorage.create_field(db_page, attrs)
                            field_id_mappings[field['id']] = str(new_field.pk)
                            created += 1
                        else:
                            DocumentStorage.update_field(
                                document, parse_persisted_id(field['id']), db_page, attrs
                            )
                            updated += 1

                    SyncService._check_budget(started_at)

                DocumentStorage.delete_pages_not_in(
                    document, [page['page_number'] for page in pages]
                )
                document.save(update_fields=['updated_at'])
        except OperationalError as e:
            logger.warning(f"Sync of document {document.pk} aborted: {e}")
            raise TransientStorageError() from e

        logger.info(
            f"Synced document {document.pk}: {len(pages)} page(s), "
            f"{created} created, {updated} updated, {deleted} deleted"
        )
        return field_id_mappings


# Singleton instance
_sync_service = None


def get_sync_service() -> SyncService:
    """Get singleton instance of sync service."""
    global _sync_service
    if _sync_service is None:
        _sync_service = SyncService()
    return _sync_service
