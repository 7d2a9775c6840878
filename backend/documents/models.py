import os

from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator


def document_pdf_upload_path(instance, filename):
    """Store uploaded PDFs under the owning document's id."""
    return f'documents/{instance.pk}/{os.path.basename(filename)}'


class Document(models.Model):
    """
    Document is one preparation/signing workflow.
    Pages, fields and recipients all hang off it.
    """
    STATUS_DRAFT = 'draft'
    STATUS_SENT = 'sent'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_SENT, 'Sent'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    title = models.CharField(max_length=255)
    org_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Organization scope key (org id or 'user:<id>')"
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='documents'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    pdf_file = models.FileField(upload_to=document_pdf_upload_path, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']

    def __str__(self):
        return self.title

    @property
    def is_draft(self):
        return self.status == self.STATUS_DRAFT

    def all_recipients_submitted(self):
        """True when the document has recipients and every one of them has submitted."""
        recipients = self.recipients.all()
        return recipients.exists() and not recipients.filter(submitted_at__isnull=True).exists()


class DocumentPage(models.Model):
    """
    One page of a document. Page numbers are 1-based and unique per document.
    """
    DEFAULT_WIDTH = 800.0
    DEFAULT_HEIGHT = 1100.0

    document = models.ForeignKey(
        Document,
        on_delete=models.CASCADE,
        related_name='pages'
    )
    page_number = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    width = models.FloatField(default=DEFAULT_WIDTH)
    height = models.FloatField(default=DEFAULT_HEIGHT)
    image_url = models.CharField(max_length=500, blank=True, default='')

    class Meta:
        ordering = ['page_number']
        constraints = [
            models.UniqueConstraint(
                fields=['document', 'page_number'],
                name='unique_page_number_per_document'
            )
        ]

    def __str__(self):
        return f"{self.document} - page {self.page_number}"


class Recipient(models.Model):
    """
    A person who fills and signs their assigned fields.
    submitted_at stays null until the recipient completes every required
    field and submits; it is never cleared afterwards.
    """
    DELIVERY_EMAIL = 'email'
    DELIVERY_SMS = 'sms'
    DELIVERY_LINK = 'link'
    DELIVERY_CHOICES = [
        (DELIVERY_EMAIL, 'Email'),
        (DELIVERY_SMS, 'SMS'),
        (DELIVERY_LINK, 'Link'),
    ]

    document = models.ForeignKey(
        Document,
        on_delete=models.CASCADE,
        related_name='recipients'
    )
    name = models.CharField(max_length=255)
    email = models.EmailField()
    role = models.CharField(max_length=100)
    color = models.CharField(max_length=7, default='#3b82f6')
    delivery_method = models.CharField(
        max_length=10,
        choices=DELIVERY_CHOICES,
        default=DELIVERY_EMAIL
    )
    submitted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.name} <{self.email}> ({self.role})"

    @property
    def has_submitted(self):
        return self.submitted_at is not None


class Field(models.Model):
    """
    A fillable field placed on a page.
    Coordinates and sizes are stored as given, without rounding or clamping.
    """
    FIELD_TYPES = [
        ('text', 'Text'),
        ('signature', 'Signature'),
        ('initials', 'Initials'),
        ('date', 'Date'),
        ('checkbox', 'Checkbox'),
        ('dropdown', 'Dropdown'),
        ('radio', 'Radio'),
        ('stamp', 'Stamp'),
    ]

    page = models.ForeignKey(
        DocumentPage,
        on_delete=models.CASCADE,
        related_name='fields'
    )
    field_type = models.CharField(max_length=20, choices=FIELD_TYPES)
    x = models.FloatField()
    y = models.FloatField()
    width = models.FloatField()
    height = models.FloatField()
    required = models.BooleanField(default=False)
    value = models.TextField(null=True, blank=True)
    label = models.CharField(max_length=255, null=True, blank=True)
    recipient = models.ForeignKey(
        Recipient,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='fields'
    )
    properties = models.JSONField(
        default=dict,
        blank=True,
        help_text="Type-specific properties: placeholder, defaultValue, options"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['page__page_number', 'y', 'x', 'id']

    def __str__(self):
        return f"{self.label or self.field_type} on {self.page}"

    @property
    def placeholder(self):
        return self.properties.get('placeholder')

    @property
    def default_value(self):
        return self.properties.get('defaultValue')

    @property
    def options(self):
        return self.properties.get('options')
