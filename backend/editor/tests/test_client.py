from unittest import mock

import pytest
import requests

from editor.client import DEFAULT_TIMEOUT, DocumentSyncClient
from editor.ids import PersistedId, TemporaryId
from editor.models import EditorState, FieldType
from editor.store import EditorStore, select_pages
from editor.sync import SyncEngine, SyncError
from editor.tests.factories import make_field, make_page


def fake_response(status_code=200, body=None):
    response = mock.Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    if body is None:
        response.json.side_effect = ValueError('No JSON')
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def client(session):
    return DocumentSyncClient('https://docsign.test/api/', '12', session=session)


def test_sync_posts_snapshot_and_returns_mappings(client, session):
    field = make_field('p1', TemporaryId('abc'), options=('A', 'B'), type=FieldType.DROPDOWN)
    session.request.return_value = fake_response(body={'success': True, 'fieldIdMappings': {'temp_abc': 55}})

    mappings = client.sync_pages((make_page(1, [field]),))

    assert mappings == {'temp_abc': '55'}
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert (method, url) == ('POST', 'https://docsign.test/api/documents/12/sync/')
    assert kwargs['timeout'] == DEFAULT_TIMEOUT == 25
    sent_field = kwargs['json']['pages'][0]['fields'][0]
    assert sent_field['id'] == 'temp_abc'
    assert sent_field['type'] == 'dropdown'
    assert sent_field['options'] == ['A', 'B']
    assert kwargs['json']['pages'][0]['pageNumber'] == 1


def test_http_error_payload_becomes_sync_error(client, session):
    session.request.return_value = fake_response(409, {'error': 'Only draft documents can be edited', 'code': 'conflict'})

    with pytest.raises(SyncError) as excinfo:
        client.sync_pages(())

    assert excinfo.value.status_code == 409
    assert excinfo.value.code == 'conflict'
    assert excinfo.value.message == 'Only draft documents can be edited'


def test_non_json_error_body(client, session):
    session.request.return_value = fake_response(502)

    with pytest.raises(SyncError) as excinfo:
        client.sync_pages(())

    assert excinfo.value.message == 'HTTP 502'


@pytest.mark.parametrize('exc', [requests.exceptions.Timeout(), requests.exceptions.ConnectionError('refused')])
def test_transport_failures_become_sync_errors(client, session, exc):
    session.request.side_effect = exc

    with pytest.raises(SyncError):
        client.sync_pages(())


def test_load_into_populates_store_without_scheduling_a_save(client, session):
    session.request.return_value = fake_response(body={
        'id': '12',
        'title': 'Lease',
        'status': 'draft',
        'pages': [{
            'id': '3', 'pageNumber': 1, 'width': 612, 'height': 792, 'imageUrl': '',
            'fields': [{
                'id': '8', 'type': 'signature', 'x': 1, 'y': 2, 'width': 3, 'height': 4,
                'pageId': '3', 'value': None, 'required': True, 'recipientId': '5', 'label': 'Sign',
                'placeholder': None, 'defaultValue': None, 'options': None,
            }],
        }],
        'recipients': [{
            'id': '5', 'name': 'Alice', 'email': 'a@example.com', 'role': 'Tenant',
            'color': '#3b82f6', 'deliveryMethod': 'email', 'submittedAt': None,
        }],
    })
    store = EditorStore()
    calls = []
    store.subscribe(lambda pages, previous, origin: calls.append(origin), select_pages)

    client.load_into(store)

    field = store.pages[0].fields[0]
    assert field.id == PersistedId('8')
    assert field.type is FieldType.SIGNATURE
    assert field.required is True
    assert field.recipient_id == '5'
    assert store.state.recipients[0].name == 'Alice'
    assert [origin.value for origin in calls] == ['internal_reconciliation']
    assert session.request.call_args.args == ('GET', 'https://docsign.test/api/documents/12/')


def test_unencodable_pages_become_sync_error(client, session):
    broken = make_field('p1', TemporaryId('abc'), type='bogus')

    with pytest.raises(SyncError):
        client.sync_pages((make_page(1, [broken]),))

    session.request.assert_not_called()


def test_engine_with_client_reports_bad_snapshot(client, session):
    store = EditorStore(EditorState(pages=(make_page(1, [make_field('p1', TemporaryId('abc'), type='bogus')]),)))
    errors = []
    engine = SyncEngine(store, client.sync_pages, on_error=errors.append)

    engine.save_now()

    assert len(errors) == 1
    assert store.state.is_saving is False
