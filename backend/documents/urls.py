"""
backend/documents/urls.py

"""

# ----------------------------
# Django imports
# ----------------------------
from django.urls import path

# ----------------------------
# Local view imports
# ----------------------------
from .views import DocumentViewSet, PublicSignViewSet

# App namespace for reverse() lookups
app_name = 'documents'

# ----------------------------
# Document editing routes (authenticated, organization scoped)
# ----------------------------
urlpatterns = [
    path('documents/', DocumentViewSet.as_view({
        'get': 'list',
        'post': 'create'
    }), name='document-list'),
    # Paged list (search/status filters) and creation of draft documents.

    path('documents/<int:pk>/', DocumentViewSet.as_view({
        'get': 'retrieve',
        'patch': 'partial_update',
        'delete': 'destroy'
    }), name='document-detail'),
    # Full document (pages, fields, recipients), rename, delete.

    path('documents/<int:pk>/sync/', DocumentViewSet.as_view({
        'post': 'sync'
    }), name='document-sync'),
    # Debounced editor save: reconciles the whole page snapshot and returns
    # the temporary-id -> persisted-id mapping.

    path('documents/<int:pk>/send/', DocumentViewSet.as_view({
        'post': 'send'
    }), name='document-send'),
    # draft -> sent; queues signing invitations.

    path('documents/<int:pk>/recipients/', DocumentViewSet.as_view({
        'put': 'recipients',
        'post': 'recipients'
    }), name='document-recipients'),
    # Replace the recipient list (PUT) or add a single recipient (POST).

    path('documents/<int:pk>/pages/', DocumentViewSet.as_view({
        'post': 'pages'
    }), name='document-pages'),
    # Append a blank page.

    path('documents/<int:pk>/fields/', DocumentViewSet.as_view({
        'post': 'fields'
    }), name='document-fields'),
    # Create a single field outside the sync path.

    path('documents/<int:pk>/upload-pdf/', DocumentViewSet.as_view({
        'post': 'upload_pdf'
    }), name='document-upload-pdf'),
    # Attach the source PDF; pages are derived from its page sizes.
]

# ----------------------------
# Public signing routes (no login; guarded by recipient membership)
# ----------------------------
urlpatterns += [
    path('sign/<int:document_id>/', PublicSignViewSet.as_view({
        'get': 'retrieve'
    }), name='sign-document'),
    # Document metadata plus only the requesting recipient's fields.

    path('sign/<int:document_id>/save/', PublicSignViewSet.as_view({
        'patch': 'save'
    }), name='sign-save'),
    # Best-effort auto-save of partial values.

    path('sign/<int:document_id>/submit/', PublicSignViewSet.as_view({
        'post': 'submit'
    }), name='sign-submit'),
    # Submit values; reports allComplete and completes the document when
    # every recipient has submitted.
]
