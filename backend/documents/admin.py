from django.contrib import admin
from .models import Document, DocumentPage, Field, Recipient


class RecipientInline(admin.TabularInline):
    model = Recipient
    extra = 0
    readonly_fields = ('submitted_at', 'created_at')


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ('title', 'org_id', 'status', 'created_at', 'updated_at')
    search_fields = ('title', 'org_id')
    list_filter = ('status', 'created_at')
    readonly_fields = ('created_at', 'updated_at')
    inlines = [RecipientInline]


@admin.register(DocumentPage)
class DocumentPageAdmin(admin.ModelAdmin):
    list_display = ('document', 'page_number', 'width', 'height')
    search_fields = ('document__title',)


@admin.register(Field)
class FieldAdmin(admin.ModelAdmin):
    list_display = ('label', 'field_type', 'page', 'recipient', 'required')
    list_filter = ('field_type', 'required')
    search_fields = ('label', 'page__document__title', 'recipient__email')
    fieldsets = (
        ('Field Info', {
            'fields': ('page', 'field_type', 'label', 'recipient', 'required')
        }),
        ('Position & Size', {
            'fields': ('x', 'y', 'width', 'height')
        }),
        ('Value', {
            'fields': ('value', 'properties')
        }),
    )


@admin.register(Recipient)
class RecipientAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'role', 'document', 'delivery_method', 'submitted_at')
    list_filter = ('delivery_method', 'submitted_at')
    search_fields = ('name', 'email', 'document__title')
    readonly_fields = ('submitted_at', 'created_at')
