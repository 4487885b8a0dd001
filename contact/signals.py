"""
Contact Form Signals

Django signals for contact-related events.
"""
import logging

from django.db.models.signals import post_save
from django.dispatch import receiver
from .models import ContactFormSubmission

logger = logging.getLogger(__name__)


@receiver(post_save, sender=ContactFormSubmission)
def contact_submission_post_save(sender, instance, created, **kwargs):
    """Log every newly stored submission."""
    if created:
        logger.info(
            f"New contact form submission {instance.pk} "
            f"({instance.enquiry_type}) from {instance.email}"
        )
