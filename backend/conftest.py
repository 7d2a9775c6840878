import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from docsign import celery_app
from documents.models import Document, DocumentPage, Field, Recipient


@pytest.fixture(autouse=True)
def eager_celery():
    """Run celery tasks inline so queued invitations can be asserted on."""
    previous = celery_app.conf.task_always_eager
    celery_app.conf.task_always_eager = True
    yield
    celery_app.conf.task_always_eager = previous


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(username='owner', password='secret')


@pytest.fixture
def org_id(user):
    return f"user:{user.pk}"


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def public_client():
    return APIClient()


@pytest.fixture
def document(org_id, user):
    return Document.objects.create(title='Lease agreement', org_id=org_id, owner=user)


@pytest.fixture
def page(document):
    return DocumentPage.objects.create(document=document, page_number=1, width=612, height=792)


@pytest.fixture
def recipient(document):
    return Recipient.objects.create(
        document=document, name='Alice', email='alice@example.com', role='Tenant'
    )


@pytest.fixture
def second_recipient(document):
    return Recipient.objects.create(
        document=document, name='Bob', email='bob@example.com', role='Landlord'
    )


@pytest.fixture
def make_field():
    def _make_field(page, recipient=None, required=False, value=None, **kwargs):
        attrs = {'field_type': 'text', 'x': 100.0, 'y': 100.0, 'width': 150.0, 'height': 30.0}
        attrs.update(kwargs)
        return Field.objects.create(
            page=page, recipient=recipient, required=required, value=value, **attrs
        )
    return _make_field


@pytest.fixture
def sent_document(document):
    document.status = Document.STATUS_SENT
    document.save(update_fields=['status'])
    return document
