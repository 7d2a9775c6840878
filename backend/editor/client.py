"""
HTTP client for the document editor endpoints.

Loads a document into an EditorStore and pushes page snapshots to the
sync endpoint. Transport and HTTP failures are raised as SyncError so the
SyncEngine can report them.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import requests

from editor.models import Page, pages_to_payload, page_from_payload, recipient_from_payload
from editor.store import ChangeOrigin, EditorStore
from editor.sync import SyncError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 25


class DocumentSyncClient:
    """
    Client for one document's editor API.

    Args:
        base_url: API root, e.g. ``https://docsign.example.com/api``
        document_id: Persisted id of the document being edited
        session: Pre-authenticated requests session (cookies, CSRF header)
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        document_id: str,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip('/')
        self.document_id = str(document_id)
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def document_url(self) -> str:
        return f"{self.base_url}/documents/{self.document_id}/"

    @property
    def sync_url(self) -> str:
        return f"{self.document_url}sync/"

    def _request(self, method: str, url: str, **kwargs) -> dict[str, Any]:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout:
            raise SyncError(f"Request to {url} timed out after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            raise SyncError(f"Request to {url} failed: {e}")

        if not response.ok:
            raise self._error_from_response(response)

        try:
            return response.json()
        except ValueError:
            raise SyncError(f"Invalid JSON in response from {url}", status_code=response.status_code)

    @staticmethod
    def _error_from_response(response: requests.Response) -> SyncError:
        """Build a SyncError from an ``{'error', 'code'}`` payload when there is one."""
        message = f"HTTP {response.status_code}"
        code = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get('error') or message
            code = body.get('code')
        return SyncError(message, status_code=response.status_code, code=code)

    def fetch_document(self) -> dict[str, Any]:
        return self._request('GET', self.document_url)

    def load_into(self, store: EditorStore) -> dict[str, Any]:
        """
        Fetch the document and replace the store's pages and recipients.

        The load is published as an internal change so a watching
        SyncEngine does not save the document straight back.
        """
        data = self.fetch_document()
        pages = tuple(page_from_payload(page) for page in data.get('pages', []))
        recipients = tuple(recipient_from_payload(r) for r in data.get('recipients', []))
        store.set_document(pages, recipients, origin=ChangeOrigin.INTERNAL_RECONCILIATION)
        logger.info(f"Loaded document {self.document_id} with {len(pages)} pages")
        return data

    def sync_pages(self, pages: tuple[Page, ...]) -> Mapping[str, str]:
        """
        Persist a pages snapshot.

        Returns:
            The server's ``{temporary_id: persisted_id}`` mappings
        """
        try:
            payload = {'pages': pages_to_payload(pages)}
        except (TypeError, ValueError) as e:
            raise SyncError(f"Could not encode pages for document {self.document_id}: {e}")

        body = self._request('POST', self.sync_url, json=payload)
        mappings = body.get('fieldIdMappings') or {}
        logger.info(f"Synced document {self.document_id}: {len(mappings)} new fields")
        return {str(temp_id): str(persisted_id) for temp_id, persisted_id in mappings.items()}
