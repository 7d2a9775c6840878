from editor.ids import TemporaryId
from editor.models import EditorState, Recipient
from editor.store import ChangeOrigin, EditorStore, select_pages
from editor.tests.factories import make_field, make_page, persisted


def build_store():
    field = make_field('p1', persisted(1))
    store = EditorStore(EditorState(pages=(make_page(1, [field]), make_page(2))))
    return store, field


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, selected, previous, origin):
        self.calls.append((selected, previous, origin))


def test_pages_subscriber_fires_on_page_changes_only():
    store, field = build_store()
    recorder = Recorder()
    store.subscribe(recorder, select_pages)

    store.select_field(field.id)
    store.set_active_page(2)
    store.set_saving(True)
    assert recorder.calls == []

    before = store.pages
    store.update_field(1, field.id, x=42.0)

    assert len(recorder.calls) == 1
    selected, previous, origin = recorder.calls[0]
    assert selected is store.pages
    assert previous is before
    assert origin is ChangeOrigin.EXTERNAL_EDIT


def test_no_op_mutations_do_not_notify():
    store, field = build_store()
    recorder = Recorder()
    store.subscribe(recorder)

    store.update_field(1, TemporaryId('missing'), x=1.0)
    store.update_field(1, field.id, x=field.x)
    store.delete_field(5, field.id)
    store.delete_page(9)
    store.set_saving(False)

    assert recorder.calls == []


def test_delete_selected_field_clears_selection():
    store, field = build_store()
    store.select_field(field.id)

    store.delete_field(1, field.id)

    assert store.state.selected_field_id is None
    assert store.pages[0].fields == ()


def test_delete_other_field_keeps_selection():
    store, field = build_store()
    other = make_field('p1', persisted(2))
    store.add_field(1, other)
    store.select_field(field.id)

    store.delete_field(1, other.id)

    assert store.state.selected_field_id == field.id


def test_duplicate_field_selects_clone():
    store, field = build_store()

    clone_id = store.duplicate_field(1, field.id)

    clone = store.pages[0].fields[-1]
    assert store.state.selected_field_id == clone_id == clone.id
    assert (clone.x, clone.y) == (field.x + 20, field.y + 20)


def test_duplicate_missing_field_returns_none():
    store, _ = build_store()
    assert store.duplicate_field(1, persisted(404)) is None
    assert store.state.selected_field_id is None


def test_delete_page_drops_selection_and_clamps_active_page():
    store, field = build_store()
    store.select_field(field.id)
    store.set_active_page(2)

    store.delete_page(1)

    assert store.state.selected_field_id is None
    assert store.state.active_page == 1
    assert [p.page_number for p in store.pages] == [1]


def test_set_document_replaces_pages_and_recipients():
    store, _ = build_store()
    recipient = Recipient(id='7', name='Alice', email='a@example.com', role='Signer', color='#ff0000')

    store.set_document([make_page(1)], [recipient])

    assert len(store.pages) == 1
    assert store.state.recipients == (recipient,)


def test_add_recipient_appends():
    store, _ = build_store()
    recipient = Recipient(id='7', name='Alice', email='a@example.com', role='Signer', color='#ff0000')

    store.add_recipient(recipient)

    assert store.state.recipients == (recipient,)


def test_origin_is_passed_through():
    store, _ = build_store()
    recorder = Recorder()
    store.subscribe(recorder, select_pages)

    store.set_pages((make_page(1),), origin=ChangeOrigin.INTERNAL_RECONCILIATION)

    assert recorder.calls[0][2] is ChangeOrigin.INTERNAL_RECONCILIATION


def test_unsubscribe_stops_notifications():
    store, field = build_store()
    recorder = Recorder()
    unsubscribe = store.subscribe(recorder, select_pages)

    unsubscribe()
    store.update_field(1, field.id, x=1.0)
    unsubscribe()

    assert recorder.calls == []


def test_update_with_unknown_key_or_bad_type_leaves_state_alone():
    store, field = build_store()
    recorder = Recorder()
    store.subscribe(recorder, select_pages)

    store.update_field(1, field.id, colour='red')
    store.update_field(1, field.id, type='bogus')

    assert recorder.calls == []
    assert store.pages[0].fields[0] == field
