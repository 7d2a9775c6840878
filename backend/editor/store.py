"""
Editor state store.

Holds the single immutable EditorState snapshot for an editing session and
notifies subscribers synchronously after every mutation. Subscribers may
watch a slice of the state through a selector; they are only called when
the selected value is a different object than before.
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
import threading
from typing import Any, Callable, Iterable

from editor import aggregate
from editor.ids import FieldId
from editor.models import EditorState, Field, Page, Recipient


Selector = Callable[[EditorState], Any]
Listener = Callable[[Any, Any, 'ChangeOrigin'], None]


class ChangeOrigin(str, Enum):
    """Who produced a state change."""

    EXTERNAL_EDIT = 'external_edit'
    INTERNAL_RECONCILIATION = 'internal_reconciliation'


def select_pages(state: EditorState) -> tuple[Page, ...]:
    return state.pages


class _Subscription:
    __slots__ = ('listener', 'selector', 'last')

    def __init__(self, listener: Listener, selector: Selector, last: Any):
        self.listener = listener
        self.selector = selector
        self.last = last


class EditorStore:
    """
    Mutable holder of the editor snapshot.

    A mutation computes and swaps the snapshot under the lock, then notifies
    subscribers outside it, in subscription order.
    """

    def __init__(self, state: EditorState | None = None):
        self._state = state or EditorState()
        self._lock = threading.RLock()
        self._subscriptions: list[_Subscription] = []

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def pages(self) -> tuple[Page, ...]:
        return self._state.pages

    def subscribe(self, listener: Listener, selector: Selector | None = None) -> Callable[[], None]:
        """
        Register ``listener(selected, previous, origin)``.

        Args:
            listener: Called after a mutation changes the selected slice
            selector: Picks the watched slice; defaults to the whole state

        Returns:
            A callable that removes the subscription
        """
        selector = selector or (lambda state: state)
        with self._lock:
            subscription = _Subscription(listener, selector, selector(self._state))
            self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            with self._lock:
                if subscription in self._subscriptions:
                    self._subscriptions.remove(subscription)

        return unsubscribe

    def update(
        self,
        mutate: Callable[[EditorState], EditorState],
        origin: ChangeOrigin = ChangeOrigin.EXTERNAL_EDIT,
    ) -> EditorState:
        """
        Apply ``mutate`` to the current snapshot and publish the result.

        ``mutate`` returning the snapshot it was given means no change and
        nobody is notified.
        """
        with self._lock:
            state = self._state
            new_state = mutate(state)
            if new_state is state:
                return state
            self._state = new_state
            pending = []
            for subscription in list(self._subscriptions):
                selected = subscription.selector(new_state)
                if selected is not subscription.last:
                    pending.append((subscription, selected, subscription.last))
                    subscription.last = selected

        for subscription, selected, previous in pending:
            subscription.listener(selected, previous, origin)
        return new_state

    def _update_pages(self, operation: Callable[[tuple[Page, ...]], tuple[Page, ...]]) -> None:
        def mutate(state: EditorState) -> EditorState:
            pages = operation(state.pages)
            return state if pages is state.pages else replace(state, pages=pages)

        self.update(mutate)

    # Document lifecycle

    def set_document(
        self,
        pages: Iterable[Page],
        recipients: Iterable[Recipient] | None = None,
        origin: ChangeOrigin = ChangeOrigin.EXTERNAL_EDIT,
    ) -> None:
        """Replace pages, and recipients when given, wholesale."""
        pages = tuple(pages)

        def mutate(state: EditorState) -> EditorState:
            new_recipients = state.recipients if recipients is None else tuple(recipients)
            return replace(state, pages=pages, recipients=new_recipients, active_page=1, selected_field_id=None)

        self.update(mutate, origin)

    def set_pages(self, pages: tuple[Page, ...], origin: ChangeOrigin = ChangeOrigin.EXTERNAL_EDIT) -> None:
        pages = tuple(pages)
        self.update(lambda state: state if pages is state.pages else replace(state, pages=pages), origin)

    # Field operations

    def add_field(self, page_number: int, field: Field) -> None:
        self._update_pages(lambda pages: aggregate.add_field(pages, page_number, field))

    def update_field(self, page_number: int, field_id: FieldId, **updates: Any) -> None:
        self._update_pages(lambda pages: aggregate.update_field(pages, page_number, field_id, updates))

    def delete_field(self, page_number: int, field_id: FieldId) -> None:
        def mutate(state: EditorState) -> EditorState:
            pages = aggregate.delete_field(state.pages, page_number, field_id)
            if pages is state.pages:
                return state
            selected = None if state.selected_field_id == field_id else state.selected_field_id
            return replace(state, pages=pages, selected_field_id=selected)

        self.update(mutate)

    def duplicate_field(self, page_number: int, field_id: FieldId) -> FieldId | None:
        """Clone a field and select the clone. Returns the clone's id."""
        clone_ids = []

        def mutate(state: EditorState) -> EditorState:
            pages, clone_id = aggregate.duplicate_field(state.pages, page_number, field_id)
            if clone_id is None:
                return state
            clone_ids.append(clone_id)
            return replace(state, pages=pages, selected_field_id=clone_id)

        self.update(mutate)
        return clone_ids[0] if clone_ids else None

    # Page operations

    def add_page(self, after_page_number: int, page: Page) -> None:
        self._update_pages(lambda pages: aggregate.add_page(pages, after_page_number, page))

    def duplicate_page(self, page_number: int) -> None:
        self._update_pages(lambda pages: aggregate.duplicate_page(pages, page_number))

    def delete_page(self, page_number: int) -> None:
        def mutate(state: EditorState) -> EditorState:
            pages = aggregate.delete_page(state.pages, page_number)
            if pages is state.pages:
                return state
            selected = state.selected_field_id
            if selected is not None and aggregate.find_field(pages, selected) is None:
                selected = None
            active_page = min(state.active_page, max(len(pages), 1))
            return replace(state, pages=pages, selected_field_id=selected, active_page=active_page)

        self.update(mutate)

    # Session flags

    def select_field(self, field_id: FieldId | None) -> None:
        self.update(
            lambda state: state if state.selected_field_id == field_id
            else replace(state, selected_field_id=field_id)
        )

    def set_saving(self, is_saving: bool) -> None:
        self.update(
            lambda state: state if state.is_saving == is_saving else replace(state, is_saving=is_saving),
            ChangeOrigin.INTERNAL_RECONCILIATION,
        )

    def set_active_page(self, page_number: int) -> None:
        self.update(
            lambda state: state if state.active_page == page_number
            else replace(state, active_page=page_number)
        )

    def add_recipient(self, recipient: Recipient) -> None:
        self.update(lambda state: replace(state, recipients=state.recipients + (recipient,)))
