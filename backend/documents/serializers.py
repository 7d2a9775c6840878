from rest_framework import serializers

from .field_ids import is_temporary_id, parse_persisted_id
from .models import Document, DocumentPage, Field, Recipient


def _str_or_none(value):
    return str(value) if value is not None else None


# ----------------------------
# Read serializers (camelCase wire format)
# ----------------------------
class FieldSerializer(serializers.ModelSerializer):
    """Serializer for Field in the editor/signing wire format."""
    id = serializers.SerializerMethodField()
    type = serializers.CharField(source='field_type')
    pageId = serializers.SerializerMethodField()
    recipientId = serializers.SerializerMethodField()
    placeholder = serializers.SerializerMethodField()
    defaultValue = serializers.SerializerMethodField()
    options = serializers.SerializerMethodField()

    class Meta:
        model = Field
        fields = [
            'id', 'type', 'x', 'y', 'width', 'height', 'pageId',
            'value', 'required', 'recipientId', 'label',
            'placeholder', 'defaultValue', 'options'
        ]
        read_only_fields = fields

    def get_id(self, obj):
        return str(obj.pk)

    def get_pageId(self, obj):
        return str(obj.page_id)

    def get_recipientId(self, obj):
        return _str_or_none(obj.recipient_id)

    def get_placeholder(self, obj):
        return obj.placeholder

    def get_defaultValue(self, obj):
        return obj.default_value

    def get_options(self, obj):
        return obj.options


class PageSerializer(serializers.ModelSerializer):
    """Serializer for DocumentPage with all of its fields."""
    id = serializers.SerializerMethodField()
    pageNumber = serializers.IntegerField(source='page_number')
    imageUrl = serializers.CharField(source='image_url')
    fields = FieldSerializer(many=True, read_only=True)

    class Meta:
        model = DocumentPage
        fields = ['id', 'pageNumber', 'width', 'height', 'imageUrl', 'fields']
        read_only_fields = fields

    def get_id(self, obj):
        return str(obj.pk)


class SigningPageSerializer(PageSerializer):
    """Page with only the fields prefetched for one recipient."""
    fields = FieldSerializer(source='recipient_fields', many=True, read_only=True)


class RecipientSerializer(serializers.ModelSerializer):
    id = serializers.SerializerMethodField()
    deliveryMethod = serializers.CharField(source='delivery_method')
    submittedAt = serializers.DateTimeField(source='submitted_at')

    class Meta:
        model = Recipient
        fields = ['id', 'name', 'email', 'role', 'color', 'deliveryMethod', 'submittedAt']
        read_only_fields = fields

    def get_id(self, obj):
        return str(obj.pk)


class DocumentPdfMixin:
    def get_pdfUrl(self, obj):
        """Return the PDF URL, absolute when a request is available."""
        if obj.pdf_file:
            request = self.context.get('request')
            if request:
                return request.build_absolute_uri(obj.pdf_file.url)
            return obj.pdf_file.url
        return None


class DocumentListSerializer(serializers.ModelSerializer):
    """Serializer for Document list view."""
    id = serializers.SerializerMethodField()
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = Document
        fields = ['id', 'title', 'status', 'updatedAt']
        read_only_fields = fields

    def get_id(self, obj):
        return str(obj.pk)


class DocumentDetailSerializer(DocumentPdfMixin, serializers.ModelSerializer):
    """Serializer for Document detail with pages, fields and recipients."""
    id = serializers.SerializerMethodField()
    pdfUrl = serializers.SerializerMethodField()
    pages = PageSerializer(many=True, read_only=True)
    recipients = RecipientSerializer(many=True, read_only=True)
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = Document
        fields = ['id', 'title', 'status', 'pdfUrl', 'pages', 'recipients', 'createdAt', 'updatedAt']
        read_only_fields = fields

    def get_id(self, obj):
        return str(obj.pk)


class SigningDocumentSerializer(DocumentPdfMixin, serializers.ModelSerializer):
    """Document metadata for a signing session."""
    id = serializers.SerializerMethodField()
    pdfUrl = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = ['id', 'title', 'status', 'pdfUrl']
        read_only_fields = fields

    def get_id(self, obj):
        return str(obj.pk)


# ----------------------------
# Document setup payloads
# ----------------------------
class DocumentCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)


class DocumentUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)


class RecipientCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    name = serializers.CharField(max_length=255)
    role = serializers.CharField(max_length=100)
    deliveryMethod = serializers.ChoiceField(
        source='delivery_method',
        choices=[choice for choice, _ in Recipient.DELIVERY_CHOICES],
        default=Recipient.DELIVERY_EMAIL
    )


class RecipientReplaceSerializer(serializers.Serializer):
    recipients = RecipientCreateSerializer(many=True)


class FieldCreateSerializer(serializers.Serializer):
    """Payload for creating a single field outside the sync path."""
    pageNumber = serializers.IntegerField(source='page_number', min_value=1)
    type = serializers.ChoiceField(choices=[choice for choice, _ in Field.FIELD_TYPES])
    x = serializers.FloatField()
    y = serializers.FloatField()
    width = serializers.FloatField()
    height = serializers.FloatField()
    pageWidth = serializers.FloatField(source='page_width', required=False, allow_null=True)
    pageHeight = serializers.FloatField(source='page_height', required=False, allow_null=True)


class PdfUploadSerializer(serializers.Serializer):
    file = serializers.FileField()

    def validate_file(self, value):
        content_type = getattr(value, 'content_type', None)
        if content_type != 'application/pdf':
            raise serializers.ValidationError('File must be a PDF')
        return value


# ----------------------------
# Sync payload
# ----------------------------
class SyncFieldSerializer(serializers.Serializer):
    id = serializers.CharField()
    type = serializers.ChoiceField(choices=[choice for choice, _ in Field.FIELD_TYPES])
    x = serializers.FloatField()
    y = serializers.FloatField()
    width = serializers.FloatField()
    height = serializers.FloatField()
    required = serializers.BooleanField(required=False, default=False)
    value = serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False, default=None)
    label = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True, default=None)
    recipientId = serializers.CharField(source='recipient_id', required=False, allow_null=True, allow_blank=True, default=None)
    placeholder = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    defaultValue = serializers.CharField(source='default_value', required=False, allow_null=True, allow_blank=True, default=None)
    options = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False, allow_null=True, default=None)

    def validate_id(self, value):
        if is_temporary_id(value):
            return value
        if parse_persisted_id(value) is None:
            raise serializers.ValidationError(f"'{value}' is neither a temporary nor a persisted id")
        return value


class SyncPageSerializer(serializers.Serializer):
    pageNumber = serializers.IntegerField(source='page_number', min_value=1)
    width = serializers.FloatField()
    height = serializers.FloatField()
    fields = SyncFieldSerializer(many=True)


class SyncPayloadSerializer(serializers.Serializer):
    pages = SyncPageSerializer(many=True, allow_empty=True)

    def validate_pages(self, pages):
        numbers = [page['page_number'] for page in pages]
        if len(numbers) != len(set(numbers)):
            raise serializers.ValidationError('Page numbers must be unique')

        ids = [field['id'] for page in pages for field in page['fields']]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError('Field ids must be unique')
        return pages


# ----------------------------
# Signing payloads
# ----------------------------
class SignFieldValuesSerializer(serializers.Serializer):
    recipientId = serializers.CharField(source='recipient_id')
    fieldValues = serializers.DictField(
        source='field_values',
        child=serializers.CharField(allow_blank=True, trim_whitespace=False)
    )
