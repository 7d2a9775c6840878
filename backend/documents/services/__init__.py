from .storage import DocumentStorage, get_document_storage
from .sync_service import SyncService, get_sync_service
from .signing_service import SigningService, SubmissionResult, get_signing_service
from .document_service import DocumentService, get_document_service
from .notification_service import NotificationService, send_signing_invitations
from .pdf_pages import read_page_sizes

__all__ = [
    'DocumentStorage',
    'get_document_storage',
    'SyncService',
    'get_sync_service',
    'SigningService',
    'SubmissionResult',
    'get_signing_service',
    'DocumentService',
    'get_document_service',
    'NotificationService',
    'send_signing_invitations',
    'read_page_sizes',
]
