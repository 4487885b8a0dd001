"""
Contact Form Models

Database schema for contact form submissions.
"""
from django.db import models


class ContactFormSubmissionManager(models.Manager):

    def record(self, full_name, email, phone, enquiry_type, message):
        """
        Append a submission. ``submitted_at`` is set by the server.

        Values are bound as query parameters by the ORM; callers pass the
        already sanitized text.
        """
        return self.create(
            full_name=full_name,
            email=email,
            phone=phone,
            enquiry_type=enquiry_type,
            message=message,
        )


class ContactFormSubmission(models.Model):
    """
    A visitor's contact form submission.

    Rows are only ever appended by the submit endpoint; nothing in this
    project updates or deletes them.
    """

    full_name = models.CharField(
        max_length=255,
        db_column='fullname',
        help_text="Name of the person contacting us"
    )

    email = models.CharField(
        max_length=255,
        help_text="Email address for follow-up"
    )

    phone = models.CharField(
        max_length=50,
        help_text="Contact phone number"
    )

    enquiry_type = models.CharField(
        max_length=100,
        db_column='enquiryType',
        help_text="Category of the enquiry"
    )

    message = models.TextField(
        help_text="The message content, HTML-escaped"
    )

    submitted_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="When the message was submitted"
    )

    objects = ContactFormSubmissionManager()

    class Meta:
        db_table = 'contact_form'
        ordering = ['-submitted_at']
        verbose_name = 'Contact Form Submission'
        verbose_name_plural = 'Contact Form Submissions'
        indexes = [
            models.Index(fields=['email'], name='contact_form_email_idx'),
        ]

    def __str__(self):
        return f"{self.full_name} - {self.enquiry_type} ({self.submitted_at:%Y-%m-%d %H:%M})"
