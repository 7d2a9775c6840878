"""
Signing session service layer.

Responsibilities:
- Resolve a recipient's signing view (only their own fields)
- Auto-save partial field values (best effort, idempotent)
- Process submissions: apply values, check required fields, mark the
  recipient submitted and complete the document once everyone has
"""

import logging
from dataclasses import dataclass, field as dc_field

from django.db import transaction
from django.db.models import Prefetch
from django.utils import timezone

from ..exceptions import AlreadySubmittedError, ForbiddenError, NotFoundError
from ..field_ids import parse_persisted_id
from ..models import Document, DocumentPage, Field, Recipient
from .storage import DocumentStorage

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    all_complete: bool
    message: str
    document_status: str
    missing_fields: list = dc_field(default_factory=list)

    def to_response(self):
        return {
            'success': True,
            'allComplete': self.all_complete,
            'message': self.message,
            'documentStatus': self.document_status,
            'missingFields': self.missing_fields,
        }


def is_filled(value):
    """A submitted value counts as filled when it is non-empty after trimming."""
    return value is not None and str(value).strip() != ''


class SigningService:
    """Service for recipient signing sessions."""

    @staticmethod
    def _find_recipient(document, recipient_id):
        pk = parse_persisted_id(recipient_id)
        if pk is None:
            return None
        return next((r for r in document.recipients.all() if r.pk == pk), None)

    @staticmethod
    def _ensure_signable(document):
        if document.is_draft:
            raise ForbiddenError('Document has not been sent for signing')

    @staticmethod
    def get_signing_view(document_id, recipient_id):
        """
        Load a document for one recipient.

        Fields are filtered in the query itself so other recipients' fields
        never leave the database.

        Returns:
            tuple: (document, recipient, pages) where each page carries only
            the recipient's fields in page.recipient_fields

        Raises:
            NotFoundError: document does not exist
            ForbiddenError: recipient is not part of the document, or the
                document is still a draft
        """
        document = Document.objects.prefetch_related('recipients').filter(pk=document_id).first()
        if document is None:
            raise NotFoundError('Document not found')

        recipient = SigningService._find_recipient(document, recipient_id)
        if recipient is None:
            raise ForbiddenError('Unauthorized access')
        SigningService._ensure_signable(document)

        pages = list(
            DocumentPage.objects.filter(document=document)
            .order_by('page_number')
            .prefetch_related(
                Prefetch(
                    'fields',
                    queryset=Field.objects.filter(recipient=recipient),
                    to_attr='recipient_fields',
                )
            )
        )
        return document, recipient, pages

    @staticmethod
    def save_progress(document_id, recipient_id, field_values):
        """
        Best-effort partial save of field values.

        Values for fields not owned by this recipient/document are skipped.
        An empty string clears the field (stored as null). Once the recipient
        has submitted, values are frozen and nothing is written.

        Returns:
            int: number of fields updated

        Raises:
            NotFoundError: recipient does not exist on this document
        """
        document = Document.objects.prefetch_related('recipients').filter(pk=document_id).first()
        recipient = SigningService._find_recipient(document, recipient_id) if document else None
        if recipient is None:
            raise NotFoundError('Invalid recipient or document')
        SigningService._ensure_signable(document)

        updated = 0
        with transaction.atomic():
            # Serializes with submit(), which holds the same row lock
            recipient = Recipient.objects.select_for_update().get(pk=recipient.pk)
            if recipient.has_submitted:
                logger.info(f"Ignoring save for recipient {recipient.pk}: already submitted")
                return 0

            for field_id, value in field_values.items():
                pk = parse_persisted_id(field_id)
                if pk is None:
                    continue
                stored = None if value == '' else value
                if DocumentStorage.save_field_value(document, recipient, pk, stored):
                    updated += 1

        skipped = len(field_values) - updated
        if skipped:
            logger.debug(f"Save for recipient {recipient.pk} skipped {skipped} field(s)")
        return updated

    @staticmethod
    def submit(document_id, recipient_id, field_values):
        """
        Apply a recipient's submission and advance completion state.

        Returns:
            SubmissionResult: all_complete is False when a required field is
            still empty; values are persisted either way.

        Raises:
            NotFoundError: document does not exist
            ForbiddenError: recipient is not part of the document
            AlreadySubmittedError: recipient already submitted (nothing applied)
        """
        with transaction.atomic():
            document = Document.objects.select_for_update().filter(pk=document_id).first()
            if document is None:
                raise NotFoundError('Document not found')

            pk = parse_persisted_id(recipient_id)
            recipient = (
                document.recipients.select_for_update().filter(pk=pk).first()
                if pk is not None else None
            )
            if recipient is None:
                raise ForbiddenError('Unauthorized access')
            if recipient.has_submitted:
                raise AlreadySubmittedError()
            SigningService._ensure_signable(document)

            recipient_fields = list(
                Field.objects.filter(page__document=document, recipient=recipient)
            )

            # Direct overwrite: no empty-string-to-null translation on submit
            to_update = []
            for field in recipient_fields:
                key = str(field.pk)
                if key in field_values:
                    field.value = field_values[key]
                    to_update.append(field)
            if to_update:
                now = timezone.now()
                for field in to_update:
                    field.updated_at = now
                Field.objects.bulk_update(to_update, ['value', 'updated_at'])

            # Required fields are judged against this submission's values only
            missing = [
                {'id': str(field.pk), 'label': field.label}
                for field in recipient_fields
                if field.required and not is_filled(field_values.get(str(field.pk)))
            ]
            if missing:
                logger.info(
                    f"Recipient {recipient.pk} saved {len(to_update)} field(s) on document "
                    f"{document.pk}; {len(missing)} required field(s) still empty"
                )
                return SubmissionResult(
                    all_complete=False,
                    message='Fields saved, but some required fields are still empty',
                    document_status=document.status,
                    missing_fields=missing,
                )

            DocumentStorage.update_recipient_submitted_at(recipient, timezone.now())
            logger.info(f"Recipient {recipient.pk} submitted document {document.pk}")

            if document.status == Document.STATUS_SENT and document.all_recipients_submitted():
                DocumentStorage.update_document_status(document, Document.STATUS_COMPLETED)
                logger.info(f"Document {document.pk} completed")

            return SubmissionResult(
                all_complete=True,
                message='Document signed successfully',
                document_status=document.status,
            )


# Singleton instance
_signing_service = None


def get_signing_service() -> SigningService:
    """Get singleton instance of signing service."""
    global _signing_service
    if _signing_service is None:
        _signing_service = SigningService()
    return _signing_service
