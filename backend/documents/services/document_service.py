"""
Document business logic service layer.

Responsibilities:
- Create, list, rename and delete documents within an organization scope
- Manage recipients while the document is a draft
- Add pages and fields outside the bulk sync path
- Attach the source PDF and derive pages from it
- Send a document for signing
"""

import logging
import random

from django.db import transaction

from ..exceptions import ConflictError, ValidationError
from ..models import Document, DocumentPage, Field, Recipient
from .pdf_pages import read_page_sizes
from .storage import DocumentStorage

logger = logging.getLogger(__name__)


def random_recipient_color():
    return '#{:06x}'.format(random.randint(0, 0xFFFFFF))


class DocumentService:
    """Service for document lifecycle and setup."""

    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

    @staticmethod
    def list_documents(org_id, page=1, limit=DEFAULT_PAGE_SIZE, search=None, status=None):
        """
        Page through an organization's documents, most recently updated first.

        Returns:
            dict: {items: [Document], total, page, limit}
        """
        page = max(int(page or 1), 1)
        limit = min(max(int(limit or DocumentService.DEFAULT_PAGE_SIZE), 1), DocumentService.MAX_PAGE_SIZE)

        queryset = Document.objects.filter(org_id=org_id)
        if search:
            queryset = queryset.filter(title__icontains=search)
        if status:
            queryset = queryset.filter(status=status)

        total = queryset.count()
        offset = (page - 1) * limit
        items = list(queryset.order_by('-updated_at')[offset:offset + limit])
        return {'items': items, 'total': total, 'page': page, 'limit': limit}

    @staticmethod
    def create_document(org_id, owner, title):
        document = Document.objects.create(org_id=org_id, owner=owner, title=title)
        logger.info(f"Created document {document.pk} in {org_id}")
        return document

    @staticmethod
    def rename_document(document, title):
        document.title = title
        document.save(update_fields=['title', 'updated_at'])
        return document

    @staticmethod
    def delete_document(document):
        document_id = document.pk
        if document.pdf_file:
            document.pdf_file.delete(save=False)
        document.delete()
        logger.info(f"Deleted document {document_id}")
        return document_id

    @staticmethod
    def _ensure_draft(document):
        if not document.is_draft:
            raise ConflictError('Only draft documents can be edited')

    @staticmethod
    def replace_recipients(document, recipients_data):
        """
        Replace the document's recipients in one transaction.

        Fields assigned to removed recipients become unassigned.
        """
        DocumentService._ensure_draft(document)
        with transaction.atomic():
            document.recipients.all().delete()
            Recipient.objects.bulk_create([
                Recipient(
                    document=document,
                    color=data.get('color') or random_recipient_color(),
                    **{k: v for k, v in data.items() if k != 'color'}
                )
                for data in recipients_data
            ])
        return list(document.recipients.all())

    @staticmethod
    def add_recipient(document, data):
        """Add a single recipient with a random color."""
        DocumentService._ensure_draft(document)
        return Recipient.objects.create(
            document=document,
            color=random_recipient_color(),
            **data
        )

    @staticmethod
    def append_blank_page(document):
        """Append a blank default-size page after the last page."""
        DocumentService._ensure_draft(document)
        with transaction.atomic():
            last = document.pages.order_by('-page_number').first()
            return DocumentPage.objects.create(
                document=document,
                page_number=(last.page_number if last else 0) + 1,
                width=DocumentPage.DEFAULT_WIDTH,
                height=DocumentPage.DEFAULT_HEIGHT,
            )

    @staticmethod
    def create_field(document, data):
        """
        Create a single, non-required field, creating its page if absent.

        Args:
            data: validated FieldCreateSerializer output
        """
        DocumentService._ensure_draft(document)
        with transaction.atomic():
            page, _ = DocumentPage.objects.get_or_create(
                document=document,
                page_number=data['page_number'],
                defaults={
                    'width': data.get('page_width') or DocumentPage.DEFAULT_WIDTH,
                    'height': data.get('page_height') or DocumentPage.DEFAULT_HEIGHT,
                },
            )
            return DocumentStorage.create_field(page, {
                'field_type': data['type'],
                'x': data['x'],
                'y': data['y'],
                'width': data['width'],
                'height': data['height'],
                'required': False,
                'properties': {},
            })

    @staticmethod
    def attach_pdf(document, uploaded_file):
        """
        Store the source PDF and create a page for every PDF page that has no
        persisted page yet.

        Returns:
            int: number of pages created
        """
        DocumentService._ensure_draft(document)
        sizes = read_page_sizes(uploaded_file)

        with transaction.atomic():
            if document.pdf_file:
                document.pdf_file.delete(save=False)
            document.pdf_file.save(uploaded_file.name, uploaded_file, save=False)
            document.save(update_fields=['pdf_file', 'updated_at'])

            existing = set(document.pages.values_list('page_number', flat=True))
            new_pages = [
                DocumentPage(document=document, page_number=number, width=width, height=height)
                for number, (width, height) in enumerate(sizes, start=1)
                if number not in existing
            ]
            DocumentPage.objects.bulk_create(new_pages)

        logger.info(f"Attached {len(sizes)}-page PDF to document {document.pk}")
        return len(new_pages)

    @staticmethod
    def send_document(document):
        """
        Move a draft to 'sent' and queue signing invitations.

        Raises:
            ConflictError: document is not a draft
            ValidationError: no recipients, or fields without a recipient
        """
        from .notification_service import queue_signing_invitations

        DocumentService._ensure_draft(document)

        if not document.recipients.exists():
            raise ValidationError('Add at least one recipient before sending')

        unassigned = list(
            Field.objects.filter(page__document=document, recipient__isnull=True)
            .values_list('id', flat=True)
        )
        if unassigned:
            raise ValidationError(
                'All fields must have recipients assigned before sending: '
                + ', '.join(str(pk) for pk in unassigned)
            )

        with transaction.atomic():
            DocumentStorage.update_document_status(document, Document.STATUS_SENT)
            queue_signing_invitations(document)

        logger.info(f"Document {document.pk} sent to recipients")
        return document


# Singleton instance
_document_service = None


def get_document_service() -> DocumentService:
    """Get singleton instance of document service."""
    global _document_service
    if _document_service is None:
        _document_service = DocumentService()
    return _document_service
