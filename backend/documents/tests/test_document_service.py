import io

import pytest
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from PyPDF2 import PdfWriter

from documents.exceptions import ConflictError, ValidationError
from documents.models import Document, DocumentPage, Field, Recipient
from documents.services import DocumentService, NotificationService
from documents.services.notification_service import build_signing_link


def make_pdf(*sizes):
    writer = PdfWriter()
    for width, height in sizes:
        writer.add_blank_page(width=width, height=height)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path
    return tmp_path


@pytest.mark.django_db
class TestListDocuments:

    def test_scopes_searches_and_pages(self, org_id, user):
        for n in range(3):
            Document.objects.create(title=f"Lease {n}", org_id=org_id, owner=user)
        Document.objects.create(title='Invoice', org_id=org_id, owner=user, status=Document.STATUS_SENT)
        Document.objects.create(title='Lease elsewhere', org_id='org-other', owner=user)

        result = DocumentService.list_documents(org_id, page=1, limit=2, search='lease')
        assert result['total'] == 3
        assert len(result['items']) == 2
        assert (result['page'], result['limit']) == (1, 2)

        sent = DocumentService.list_documents(org_id, status=Document.STATUS_SENT)
        assert [d.title for d in sent['items']] == ['Invoice']

    def test_limit_is_clamped(self, org_id):
        result = DocumentService.list_documents(org_id, page=0, limit=1000)
        assert (result['page'], result['limit']) == (1, DocumentService.MAX_PAGE_SIZE)


@pytest.mark.django_db
class TestDocumentSetup:

    def test_replace_recipients_unassigns_fields_of_removed_recipients(self, document, page, recipient, make_field):
        field = make_field(page, recipient=recipient)

        recipients = DocumentService.replace_recipients(document, [
            {'name': 'Carol', 'email': 'carol@example.com', 'role': 'Witness', 'delivery_method': 'email'},
        ])

        assert [r.name for r in recipients] == ['Carol']
        assert recipients[0].color.startswith('#') and len(recipients[0].color) == 7
        field.refresh_from_db()
        assert field.recipient is None

    def test_add_recipient_requires_draft(self, sent_document):
        with pytest.raises(ConflictError):
            DocumentService.add_recipient(sent_document, {'name': 'X', 'email': 'x@example.com', 'role': 'Signer'})

    def test_append_blank_page_uses_next_number_and_default_size(self, document, page):
        new_page = DocumentService.append_blank_page(document)

        assert new_page.page_number == 2
        assert (new_page.width, new_page.height) == (DocumentPage.DEFAULT_WIDTH, DocumentPage.DEFAULT_HEIGHT)

    def test_create_field_creates_missing_page(self, document):
        field = DocumentService.create_field(document, {
            'page_number': 3, 'type': 'checkbox', 'x': 1, 'y': 2, 'width': 20, 'height': 20,
            'page_width': 612, 'page_height': 792,
        })

        assert field.page.page_number == 3
        assert (field.page.width, field.page.height) == (612, 792)
        assert field.required is False

    def test_attach_pdf_creates_pages_from_pdf_sizes(self, document, media_root):
        upload = SimpleUploadedFile(
            'contract.pdf', make_pdf((612, 792), (842, 595)), content_type='application/pdf'
        )

        created = DocumentService.attach_pdf(document, upload)

        assert created == 2
        sizes = list(document.pages.order_by('page_number').values_list('width', 'height'))
        assert sizes == [(612.0, 792.0), (842.0, 595.0)]
        document.refresh_from_db()
        assert document.pdf_file.name.endswith('contract.pdf')

    def test_attach_pdf_keeps_existing_pages(self, document, page, media_root):
        upload = SimpleUploadedFile('c.pdf', make_pdf((612, 792), (612, 792)), content_type='application/pdf')

        assert DocumentService.attach_pdf(document, upload) == 1
        assert document.pages.count() == 2

    def test_attach_pdf_rejects_garbage(self, document, media_root):
        upload = SimpleUploadedFile('c.pdf', b'not a pdf at all', content_type='application/pdf')

        with pytest.raises(ValidationError):
            DocumentService.attach_pdf(document, upload)
        assert not document.pages.exists()


@pytest.mark.django_db
class TestSendDocument:

    def test_sends_and_emails_every_email_recipient(
        self, document, page, recipient, make_field, django_capture_on_commit_callbacks
    ):
        Recipient.objects.create(
            document=document, name='Link only', email='link@example.com', role='Viewer',
            delivery_method=Recipient.DELIVERY_LINK,
        )
        make_field(page, recipient=recipient)

        with django_capture_on_commit_callbacks(execute=True):
            DocumentService.send_document(document)

        document.refresh_from_db()
        assert document.status == Document.STATUS_SENT
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ['alice@example.com']
        assert build_signing_link(document.pk, recipient.pk) in mail.outbox[0].body

    def test_requires_a_recipient(self, document):
        with pytest.raises(ValidationError):
            DocumentService.send_document(document)
        assert document.status == Document.STATUS_DRAFT

    def test_requires_every_field_to_be_assigned(self, document, page, recipient, make_field):
        make_field(page)

        with pytest.raises(ValidationError):
            DocumentService.send_document(document)
        document.refresh_from_db()
        assert document.status == Document.STATUS_DRAFT

    def test_cannot_send_twice(self, sent_document, recipient):
        with pytest.raises(ConflictError):
            DocumentService.send_document(sent_document)


@pytest.mark.django_db
class TestNotifications:

    def test_signing_link_carries_recipient_id(self, settings):
        settings.FRONTEND_BASE_URL = 'https://sign.example.com/'
        assert build_signing_link(5, 9) == 'https://sign.example.com/sign/5?recipientId=9'

    def test_one_failing_recipient_does_not_stop_the_rest(self, document, recipient, second_recipient, monkeypatch):
        original = NotificationService.send_invitation

        def flaky(doc, rcpt):
            if rcpt.pk == recipient.pk:
                raise ConnectionError('smtp down')
            return original(doc, rcpt)

        monkeypatch.setattr(NotificationService, 'send_invitation', staticmethod(flaky))

        assert NotificationService.send_invitations(document) == 1
        assert mail.outbox[0].to == ['bob@example.com']


@pytest.mark.django_db
def test_field_for_unassigned_check_ignores_other_documents(document, page, recipient, make_field, user):
    other = Document.objects.create(title='Other', org_id=document.org_id, owner=user)
    make_field(DocumentPage.objects.create(document=other, page_number=1))
    make_field(page, recipient=recipient)

    DocumentService.send_document(document)

    assert Field.objects.filter(page__document=document, recipient__isnull=True).count() == 0
    document.refresh_from_db()
    assert document.status == Document.STATUS_SENT
