"""
Persistence operations for documents, pages, fields and recipients.

Every operation is a thin, ORM-backed step that callers compose inside a
single transaction.atomic() block; none of them opens its own transaction.
"""

import logging

from django.db.models import Prefetch
from django.utils import timezone

from ..exceptions import NotFoundError
from ..models import Document, DocumentPage, Field

logger = logging.getLogger(__name__)

# Field attributes the sync protocol may overwrite in place
MUTABLE_FIELD_ATTRS = (
    'field_type', 'x', 'y', 'width', 'height', 'value',
    'required', 'label', 'recipient', 'properties',
)


class DocumentStorage:
    """ORM-backed storage for the document aggregate."""

    @staticmethod
    def upsert_page(document, page_number, width, height):
        """
        Create the page numbered page_number if absent, otherwise update its
        dimensions.

        Returns:
            DocumentPage
        """
        page, created = DocumentPage.objects.update_or_create(
            document=document,
            page_number=page_number,
            defaults={'width': width, 'height': height},
        )
        if created:
            logger.debug(f"Created page {page_number} for document {document.pk}")
        return page

    @staticmethod
    def delete_fields_not_in(page, keep_ids):
        """
        Delete every field on page whose id is not in keep_ids.

        Returns:
            int: number of fields deleted
        """
        deleted, _ = Field.objects.filter(page=page).exclude(id__in=list(keep_ids)).delete()
        return deleted

    @staticmethod
    def create_field(page, attrs):
        """Create a field on page from a dict of model attributes."""
        return Field.objects.create(page=page, **attrs)

    @staticmethod
    def update_field(document, field_id, page, attrs):
        """
        Overwrite a persisted field's mutable attributes and (re)attach it to page.

        Raises:
            NotFoundError: field does not exist on this document
        """
        field = Field.objects.filter(id=field_id, page__document=document).first()
        if field is None:
            raise NotFoundError(f"Field {field_id} not found")

        for name in MUTABLE_FIELD_ATTRS:
            if name in attrs:
                setattr(field, name, attrs[name])
        field.page = page
        field.save()
        return field

    @staticmethod
    def delete_pages_not_in(document, page_numbers):
        """Delete persisted pages (and their fields) whose number is not in page_numbers."""
        deleted, _ = DocumentPage.objects.filter(document=document).exclude(
            page_number__in=list(page_numbers)
        ).delete()
        return deleted

    @staticmethod
    def find_document_with_pages_fields_recipients(document_id, org_id=None):
        """
        Load a document with pages (ordered), their fields and its recipients.

        Args:
            document_id: primary key
            org_id: optional organization scope; a document outside it is
                treated as absent

        Returns:
            Document or None
        """
        queryset = Document.objects.prefetch_related(
            Prefetch('pages', queryset=DocumentPage.objects.order_by('page_number')),
            Prefetch('pages__fields', queryset=Field.objects.select_related('recipient')),
            'recipients',
        )
        if org_id is not None:
            queryset = queryset.filter(org_id=org_id)
        return queryset.filter(pk=document_id).first()

    @staticmethod
    def update_recipient_submitted_at(recipient, timestamp):
        recipient.submitted_at = timestamp
        recipient.save(update_fields=['submitted_at'])

    @staticmethod
    def update_document_status(document, status):
        document.status = status
        document.save(update_fields=['status', 'updated_at'])

    @staticmethod
    def save_field_value(document, recipient, field_id, value):
        """
        Write value to a field only if it belongs to recipient and to a page of
        document.

        Returns:
            bool: whether a field was updated
        """
        updated = Field.objects.filter(
            id=field_id,
            recipient=recipient,
            page__document=document,
        ).update(value=value, updated_at=timezone.now())
        return updated > 0


# Singleton instance
_document_storage = None


def get_document_storage() -> DocumentStorage:
    """Get singleton instance of document storage."""
    global _document_storage
    if _document_storage is None:
        _document_storage = DocumentStorage()
    return _document_storage
