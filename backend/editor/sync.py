"""
Debounced synchronization of the editor's pages with the server.

The engine watches the store's ``pages`` slice. Each external change
(re)starts a single trailing-edge timer; when it fires the latest snapshot
is handed to the transport. Saves are serialized. After a successful save
the server's temporary-id mappings are applied back to the store as an
internal reconciliation, which the engine itself ignores.
"""

from __future__ import annotations

from dataclasses import replace
import logging
import threading
from typing import Any, Callable, Mapping, Protocol

from editor.aggregate import remap_field_ids
from editor.ids import PersistedId
from editor.models import EditorState, Page
from editor.store import ChangeOrigin, EditorStore, select_pages

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 2.0

Pages = tuple[Page, ...]


class SyncError(Exception):
    """A synchronization attempt failed; the snapshot was not persisted."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]
SaveTransport = Callable[[Pages], Mapping[str, str]]


def _thread_timer(interval: float, function: Callable[[], None]) -> Timer:
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


class SyncEngine:
    """
    Debounced saver for one document editing session.

    Args:
        store: The editor store to watch and reconcile
        transport: Persists a pages snapshot, returns ``{temp_id: persisted_id}``
        debounce_seconds: Quiet period before a save is dispatched
        timer_factory: Builds a startable/cancellable timer
        on_error: Notification hook called with the SyncError of a failed save
    """

    def __init__(
        self,
        store: EditorStore,
        transport: SaveTransport,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        timer_factory: TimerFactory = _thread_timer,
        on_error: Callable[[SyncError], Any] | None = None,
    ):
        self.store = store
        self.transport = transport
        self.debounce_seconds = debounce_seconds
        self.timer_factory = timer_factory
        self.on_error = on_error

        self._lock = threading.Lock()
        self._save_lock = threading.Lock()
        self._timer: Timer | None = None
        self._pending: Pages | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self.last_error: SyncError | None = None

    def start(self) -> 'SyncEngine':
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_pages_changed, select_pages)
        return self

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def _on_pages_changed(self, pages: Pages, previous: Pages, origin: ChangeOrigin) -> None:
        if origin is ChangeOrigin.INTERNAL_RECONCILIATION:
            return
        self.schedule(pages)

    def schedule(self, pages: Pages) -> None:
        """Remember ``pages`` as the latest snapshot and restart the debounce timer."""
        with self._lock:
            self._pending = pages
            if self._timer is not None:
                self._timer.cancel()
            self._timer = self.timer_factory(self.debounce_seconds, self._fire)
            self._timer.start()

    def _cancel_timer(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self) -> None:
        with self._save_lock:
            with self._lock:
                pages = self._pending
                self._pending = None
                self._timer = None
            if pages is None:
                return
            self._save(pages)

    def flush(self) -> None:
        """Dispatch a scheduled save now instead of waiting for the timer."""
        self._cancel_timer()
        self._fire()

    def save_now(self) -> None:
        """Save the store's current pages immediately, e.g. to retry after a failure."""
        with self._lock:
            self._pending = self.store.pages
        self.flush()

    def close(self) -> None:
        """Stop watching the store and flush whatever is still scheduled."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.flush()

    def _save(self, pages: Pages) -> bool:
        self.store.set_saving(True)
        try:
            mappings = self.transport(pages)
        except SyncError as e:
            logger.error(f"Document sync failed: {e.message}")
            self._report(e)
            return False
        except Exception as e:
            logger.exception(f"Document sync failed unexpectedly: {e}")
            self._report(SyncError(f"Unexpected sync failure: {e}"))
            return False
        finally:
            self.store.set_saving(False)

        self.last_error = None
        if mappings:
            logger.debug(f"Remapping {len(mappings)} temporary field ids")
            self._reconcile(pages, mappings)
        return True

    def _report(self, error: SyncError) -> None:
        self.last_error = error
        if self.on_error is not None:
            self.on_error(error)

    def _reconcile(self, saved: Pages, mappings: Mapping[str, str]) -> None:
        remapped_saved = remap_field_ids(saved, mappings)

        def mutate(state: EditorState) -> EditorState:
            if state.pages is saved:
                pages = remapped_saved
            else:
                # Edits landed during the save; keep them and only swap ids.
                pages = remap_field_ids(state.pages, mappings)
            selected = state.selected_field_id
            if selected is not None and str(selected) in mappings:
                selected = PersistedId(str(mappings[str(selected)]))
            if pages is state.pages and selected == state.selected_field_id:
                return state
            return replace(state, pages=pages, selected_field_id=selected)

        self.store.update(mutate, ChangeOrigin.INTERNAL_RECONCILIATION)

        with self._lock:
            if self._pending is not None:
                self._pending = remap_field_ids(self._pending, mappings)
