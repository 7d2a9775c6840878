import random

import pytest

from editor import aggregate
from editor.ids import PersistedId, TemporaryId
from editor.models import FieldType
from editor.tests.factories import make_field, make_page, persisted


@pytest.fixture
def pages():
    return (
        make_page(1, [make_field('p1', persisted(1)), make_field('p1', persisted(2))]),
        make_page(2, [make_field('p2', persisted(3))]),
        make_page(3),
    )


def page_numbers(pages):
    return [page.page_number for page in pages]


class TestFieldOperations:

    def test_add_field_appends_to_named_page(self, pages):
        field = make_field('elsewhere')

        result = aggregate.add_field(pages, 2, field)

        assert [f.id for f in result[1].fields] == [persisted(3), field.id]
        assert result[1].fields[-1].page_id == 'p2'
        assert result[0] is pages[0]

    def test_update_field_merges_changes(self, pages):
        result = aggregate.update_field(pages, 1, persisted(2), {'x': 5.5, 'label': 'Name', 'options': ['a']})

        updated = result[0].fields[1]
        assert (updated.x, updated.label, updated.options) == (5.5, 'Name', ('a',))
        assert result[0].fields[0] is pages[0].fields[0]

    def test_update_field_cannot_change_identity(self, pages):
        result = aggregate.update_field(pages, 1, persisted(1), {'id': persisted(99), 'page_id': 'p9'})
        assert result is pages

    def test_update_with_identical_values_returns_same_pages(self, pages):
        field = pages[0].fields[0]
        assert aggregate.update_field(pages, 1, field.id, {'x': field.x}) is pages

    @pytest.mark.parametrize('page_number, field_id', [(9, persisted(1)), (1, persisted(3)), (1, TemporaryId('gone'))])
    def test_stale_references_are_no_ops(self, pages, page_number, field_id):
        assert aggregate.update_field(pages, page_number, field_id, {'x': 1.0}) is pages
        assert aggregate.delete_field(pages, page_number, field_id) is pages
        assert aggregate.duplicate_field(pages, page_number, field_id) == (pages, None)
        assert aggregate.add_field(pages, 9, make_field()) is pages

    def test_update_field_coerces_type_and_options(self, pages):
        result = aggregate.update_field(pages, 1, persisted(1), {'type': 'dropdown', 'options': ['Yes', 'No'], 'x': 3})

        updated = result[0].fields[0]
        assert updated.type is FieldType.DROPDOWN
        assert updated.options == ('Yes', 'No')
        assert updated.x == 3.0

    @pytest.mark.parametrize('updates', [
        {'type': 'bogus'},
        {'colour': 'red'},
        {'options': 'Yes,No'},
        {'width': None},
    ])
    def test_invalid_updates_are_dropped(self, pages, updates):
        assert aggregate.update_field(pages, 1, persisted(1), updates) is pages

    def test_valid_keys_apply_when_others_are_dropped(self, pages):
        result = aggregate.update_field(pages, 1, persisted(1), {'type': 'bogus', 'label': 'Kept'})

        assert result[0].fields[0].label == 'Kept'
        assert result[0].fields[0].type is FieldType.TEXT

    def test_delete_field(self, pages):
        result = aggregate.delete_field(pages, 1, persisted(1))
        assert [f.id for f in result[0].fields] == [persisted(2)]

    def test_duplicate_field_offsets_clone_with_fresh_temporary_id(self):
        source = make_field('p1', persisted(7), x=100.0, y=100.0, label='Sign here')
        pages = (make_page(1, [source]),)

        result, clone_id = aggregate.duplicate_field(pages, 1, source.id)

        clone = result[0].fields[-1]
        assert isinstance(clone_id, TemporaryId)
        assert clone.id == clone_id
        assert (clone.x, clone.y) == (120.0, 120.0)
        assert clone.label == 'Sign here'
        assert result[0].fields[0] == source


class TestPageOperations:

    def test_add_page_inserts_after_and_shifts_later_pages(self, pages):
        result = aggregate.add_page(pages, 1, make_page(99, page_id='new'))

        assert [p.id for p in result] == ['p1', 'new', 'p2', 'p3']
        assert page_numbers(result) == [1, 2, 3, 4]
        assert result[0] is pages[0]

    def test_add_page_after_unknown_number_appends(self, pages):
        result = aggregate.add_page(pages, 42, make_page(0, page_id='new'))

        assert result[-1].id == 'new'
        assert page_numbers(result) == [1, 2, 3, 4]

    def test_duplicate_page_clones_fields_with_fresh_ids(self, pages):
        result = aggregate.duplicate_page(pages, 1)

        source, clone = result[0], result[1]
        assert page_numbers(result) == [1, 2, 3, 4]
        assert clone.id != source.id
        assert len(clone.fields) == len(source.fields)
        assert all(isinstance(f.id, TemporaryId) for f in clone.fields)
        assert all(f.page_id == clone.id for f in clone.fields)
        assert len({f.id for f in clone.fields}) == len(clone.fields)
        assert [(f.x, f.y) for f in clone.fields] == [(f.x, f.y) for f in source.fields]

    def test_delete_page_renumbers(self, pages):
        result = aggregate.delete_page(pages, 2)

        assert [p.id for p in result] == ['p1', 'p3']
        assert page_numbers(result) == [1, 2]

    def test_delete_unknown_page_is_no_op(self, pages):
        assert aggregate.delete_page(pages, 7) is pages
        assert aggregate.duplicate_page(pages, 7) is pages

    def test_random_structural_edits_keep_numbers_contiguous(self, pages):
        rng = random.Random(1234)
        current = pages
        for step in range(200):
            count = len(current)
            op = rng.choice(['add', 'duplicate', 'delete'])
            target = rng.randint(0, count + 1)
            if op == 'add':
                current = aggregate.add_page(current, target, make_page(0, page_id=f"n{step}"))
            elif op == 'duplicate':
                current = aggregate.duplicate_page(current, target)
            else:
                current = aggregate.delete_page(current, target)
            assert page_numbers(current) == list(range(1, len(current) + 1))


class TestRemapFieldIds:

    def test_replaces_mapped_temporary_ids_only(self):
        temp = TemporaryId('abc')
        other = TemporaryId('def')
        pages = (
            make_page(1, [make_field('p1', temp), make_field('p1', other)]),
            make_page(2, [make_field('p2', persisted(5))]),
        )

        result = aggregate.remap_field_ids(pages, {'temp_abc': '41'})

        assert [f.id for f in result[0].fields] == [PersistedId('41'), other]
        assert result[1] is pages[1]

    def test_without_matches_returns_same_pages(self, pages):
        assert aggregate.remap_field_ids(pages, {'temp_unknown': '1'}) is pages
        assert aggregate.remap_field_ids(pages, {}) is pages
