
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .exceptions import NotFoundError, ValidationError
from .models import Document
from .serializers import (
    DocumentListSerializer, DocumentDetailSerializer,
    DocumentCreateSerializer, DocumentUpdateSerializer,
    RecipientSerializer, RecipientCreateSerializer, RecipientReplaceSerializer,
    PageSerializer, FieldSerializer, FieldCreateSerializer, PdfUploadSerializer,
    SyncPayloadSerializer, SignFieldValuesSerializer,
    SigningDocumentSerializer, SigningPageSerializer,
)
from .services import (
    DocumentService, get_document_service, get_document_storage,
    get_signing_service, get_sync_service,
)



def get_org_scope(request):
    """Organization scope key: the session's org, else a per-user scope."""
    org_id = request.session.get('org_id') if hasattr(request, 'session') else None
    return org_id or f"user:{request.user.pk}"


class DocumentViewSet(viewsets.ViewSet):
    """ViewSet for document editing, scoped to the caller's organization."""
    parser_classes = (JSONParser,)

    def get_parsers(self):
        """PDF upload is multipart; everything else is JSON."""
        if self.request.method == 'POST' and self.request.path.rstrip('/').endswith('upload-pdf'):
            self.parser_classes = (MultiPartParser, FormParser)
        return super().get_parsers()

    def get_document(self, request, pk):
        document = Document.objects.filter(pk=pk, org_id=get_org_scope(request)).first()
        if document is None:
            raise NotFoundError('Document not found')
        return document

    def list(self, request):
        """List documents with paging, title search and status filter."""
        params = request.query_params
        try:
            result = get_document_service().list_documents(
                get_org_scope(request),
                page=params.get('page', 1),
                limit=params.get('limit', DocumentService.DEFAULT_PAGE_SIZE),
                search=params.get('search'),
                status=params.get('status'),
            )
        except ValueError:
            raise ValidationError('page and limit must be integers')

        return Response({
            'items': DocumentListSerializer(result['items'], many=True).data,
            'total': result['total'],
            'page': result['page'],
            'limit': result['limit'],
        })

    def create(self, request):
        """Create a new draft document."""
        serializer = DocumentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        document = get_document_service().create_document(
            get_org_scope(request), request.user, serializer.validated_data['title']
        )
        return Response(
            DocumentDetailSerializer(document, context={'request': request}).data,
            status=status.HTTP_201_CREATED
        )

    def retrieve(self, request, pk=None):
        """Get a document with pages, fields and recipients."""
        document = get_document_storage().find_document_with_pages_fields_recipients(
            pk, org_id=get_org_scope(request)
        )
        if document is None:
            raise NotFoundError('Document not found')
        return Response(DocumentDetailSerializer(document, context={'request': request}).data)

    def partial_update(self, request, pk=None):
        """Rename a document."""
        document = self.get_document(request, pk)
        serializer = DocumentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        get_document_service().rename_document(document, serializer.validated_data['title'])
        return Response(DocumentListSerializer(document).data)

    def destroy(self, request, pk=None):
        document = self.get_document(request, pk)
        document_id = get_document_service().delete_document(document)
        return Response({'id': str(document_id)})

    @action(detail=True, methods=['post'])
    def sync(self, request, pk=None):
        """Reconcile the editor's page snapshot with storage."""
        document = self.get_document(request, pk)
        serializer = SyncPayloadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        field_id_mappings = get_sync_service().sync_document(document, serializer.validated_data['pages'])
        return Response({'success': True, 'fieldIdMappings': field_id_mappings})

    @action(detail=True, methods=['post'])
    def send(self, request, pk=None):
        """Send a draft document to its recipients."""
        document = self.get_document(request, pk)
        get_document_service().send_document(document)
        return Response(DocumentListSerializer(document).data)

    @action(detail=True, methods=['put', 'post'])
    def recipients(self, request, pk=None):
        """PUT replaces all recipients; POST adds one."""
        document = self.get_document(request, pk)

        if request.method == 'PUT':
            serializer = RecipientReplaceSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            recipients = get_document_service().replace_recipients(
                document, serializer.validated_data['recipients']
            )
            return Response(RecipientSerializer(recipients, many=True).data)

        serializer = RecipientCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        recipient = get_document_service().add_recipient(document, serializer.validated_data)
        return Response(RecipientSerializer(recipient).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def pages(self, request, pk=None):
        """Append a blank page."""
        document = self.get_document(request, pk)
        page = get_document_service().append_blank_page(document)
        return Response(PageSerializer(page).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def fields(self, request, pk=None):
        """Create one field, creating its page if needed."""
        document = self.get_document(request, pk)
        serializer = FieldCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        field = get_document_service().create_field(document, serializer.validated_data)
        return Response(FieldSerializer(field).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='upload-pdf')
    def upload_pdf(self, request, pk=None):
        """Attach the source PDF and derive pages from it."""
        document = self.get_document(request, pk)
        serializer = PdfUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        pages_created = get_document_service().attach_pdf(document, serializer.validated_data['file'])
        output = DocumentDetailSerializer(
            get_document_storage().find_document_with_pages_fields_recipients(document.pk),
            context={'request': request}
        ).data
        return Response({
            'success': True,
            'pdfUrl': output['pdfUrl'],
            'pagesCreated': pages_created,
            'document': output,
        })


class PublicSignViewSet(viewsets.ViewSet):
    """ViewSet for recipient signing (no login; scoped by recipient id)."""
    permission_classes = [AllowAny]
    authentication_classes = []
    parser_classes = (JSONParser,)

    def retrieve(self, request, document_id=None):
        """Signing page data: document metadata and only this recipient's fields."""
        recipient_id = request.query_params.get('recipientId')
        if not recipient_id:
            raise ValidationError('Recipient ID is required')

        document, recipient, pages = get_signing_service().get_signing_view(document_id, recipient_id)
        return Response({
            **SigningDocumentSerializer(document, context={'request': request}).data,
            'recipient': RecipientSerializer(recipient).data,
            'pages': SigningPageSerializer(pages, many=True).data,
        })

    @action(detail=True, methods=['patch'])
    def save(self, request, document_id=None):
        """Auto-save partial progress."""
        serializer = SignFieldValuesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        get_signing_service().save_progress(
            document_id,
            serializer.validated_data['recipient_id'],
            serializer.validated_data['field_values'],
        )
        return Response({'success': True})

    @action(detail=True, methods=['post'])
    def submit(self, request, document_id=None):
        """Submit field values; completes the recipient when all required fields are filled."""
        serializer = SignFieldValuesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = get_signing_service().submit(
            document_id,
            serializer.validated_data['recipient_id'],
            serializer.validated_data['field_values'],
        )
        return Response(result.to_response(), status=status.HTTP_200_OK)
