"""
Signing invitation delivery.

Invitations are queued after the 'sent' transition commits and delivered
by a celery task through Django's mail framework.
"""

import logging
from urllib.parse import urlencode

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction

from ..models import Document, Recipient

logger = logging.getLogger(__name__)


def build_signing_link(document_id, recipient_id):
    base_url = settings.FRONTEND_BASE_URL.rstrip('/')
    return f"{base_url}/sign/{document_id}?{urlencode({'recipientId': recipient_id})}"


class NotificationService:
    """Service for notifying recipients."""

    @staticmethod
    def send_invitation(document, recipient):
        """
        Deliver one invitation.

        Returns:
            bool: whether a message was sent
        """
        if recipient.delivery_method == Recipient.DELIVERY_LINK:
            return False
        if recipient.delivery_method == Recipient.DELIVERY_SMS:
            logger.warning(f"SMS delivery is not supported; skipping recipient {recipient.pk}")
            return False

        link = build_signing_link(document.pk, recipient.pk)
        send_mail(
            subject=f"Please sign: {document.title}",
            message=(
                f"Hello {recipient.name},\n\n"
                f"You have been asked to fill and sign \"{document.title}\" as {recipient.role}.\n\n"
                f"Open the document: {link}\n"
            ),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient.email],
        )
        return True

    @staticmethod
    def send_invitations(document):
        """
        Notify every recipient of a document.

        A failure for one recipient is logged and does not stop the others.

        Returns:
            int: number of messages sent
        """
        sent = 0
        for recipient in document.recipients.all():
            try:
                if NotificationService.send_invitation(document, recipient):
                    sent += 1
            except Exception as e:
                logger.error(f"Failed to send invitation to recipient {recipient.pk}: {e}")
        logger.info(f"Sent {sent} invitation(s) for document {document.pk}")
        return sent


@shared_task
def send_signing_invitations(document_id: int):
    """Celery task to deliver signing invitations for a document."""
    document = Document.objects.filter(pk=document_id).first()
    if document is None:
        logger.error(f"Document {document_id} not found")
        return 0
    return NotificationService.send_invitations(document)


def queue_signing_invitations(document):
    """Queue invitation delivery once the surrounding transaction commits."""
    document_id = document.pk
    transaction.on_commit(lambda: send_signing_invitations.delay(document_id))
