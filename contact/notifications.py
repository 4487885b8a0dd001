"""
Contact Form Notification Emails

Builds and sends the two emails that follow a stored submission: the
operator notification and the acknowledgment to the submitter.
"""
import logging
from email.utils import formataddr
from html import unescape

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.safestring import mark_safe

from .exceptions import MailerError, MailerNotConfigured

logger = logging.getLogger(__name__)

SMTP_BACKEND = 'django.core.mail.backends.smtp.EmailBackend'


class NotificationEnvelope:
    """One outgoing email: a plain text body with an HTML alternative."""

    def __init__(self, to, subject, text_body, html_body, from_email, bcc=None, reply_to=None):
        self.to = list(to)
        self.bcc = list(bcc or [])
        self.subject = subject
        self.text_body = text_body
        self.html_body = html_body
        self.from_email = from_email
        self.reply_to = list(reply_to or [])

    def __repr__(self):
        return f"<NotificationEnvelope to={self.to} subject={self.subject!r}>"

    def to_message(self):
        message = EmailMultiAlternatives(
            subject=self.subject,
            body=self.text_body,
            from_email=self.from_email,
            to=self.to,
            bcc=self.bcc,
            reply_to=self.reply_to,
        )
        message.attach_alternative(self.html_body, "text/html")
        return message


class ContactNotifier:
    """
    Renders and sends contact form emails through Django's mail backend.

    Usage:
        notifier = ContactNotifier()
        notifier.send(notifier.admin_notification(submission))
    """

    def __init__(self):
        self.site_name = settings.CONTACT_SITE_NAME
        self.site_url = settings.CONTACT_SITE_URL
        self.logo_url = settings.CONTACT_LOGO_URL
        self.mailbox = settings.CONTACT_MAILBOX
        self.admin_email = settings.CONTACT_EMAIL_TO
        self.from_address = settings.CONTACT_EMAIL_FROM
        self.bcc_email = settings.CONTACT_EMAIL_BCC

    @property
    def from_email(self):
        return formataddr((f"{self.site_name} Contact Form", self.from_address))

    @property
    def bcc(self):
        return [self.bcc_email] if self.bcc_email else []

    def _render(self, template, submission):
        """Render ``template`` as a (text, html) pair."""
        context = {
            'site_name': self.site_name,
            'site_url': self.site_url,
            'logo_url': self.logo_url,
            'mailbox': self.mailbox,
        }
        values = {
            'full_name': submission.full_name,
            'email': submission.email,
            'phone': submission.phone,
            'enquiry_type': submission.enquiry_type,
            'message': submission.message,
        }

        # Stored values are already HTML-escaped; autoescape must not run twice
        html_context = dict(context, **{key: mark_safe(value) for key, value in values.items()})
        text_context = dict(context, **{key: unescape(value) for key, value in values.items()})

        return (
            render_to_string(f'contact/emails/{template}.txt', text_context),
            render_to_string(f'contact/emails/{template}.html', html_context),
        )

    def admin_notification(self, submission):
        """Email to the site operator with the submitter's details."""
        text_body, html_body = self._render('admin_notification', submission)
        return NotificationEnvelope(
            to=[self.admin_email],
            bcc=self.bcc,
            reply_to=[unescape(submission.email)],
            subject=f"New Contact Form Submission - {self.site_name}",
            text_body=text_body,
            html_body=html_body,
            from_email=self.from_email,
        )

    def auto_reply(self, submission):
        """Acknowledgment to the submitter echoing their message."""
        recipient = formataddr((unescape(submission.full_name), unescape(submission.email)))
        text_body, html_body = self._render('auto_reply', submission)
        return NotificationEnvelope(
            to=[recipient],
            bcc=self.bcc,
            subject=f"Thanks for contacting {self.site_name}!",
            text_body=text_body,
            html_body=html_body,
            from_email=self.from_email,
        )

    def check_configuration(self):
        """Raise MailerNotConfigured when sending cannot possibly work."""
        missing = []
        if not self.admin_email:
            missing.append('CONTACT_EMAIL_TO')
        if not self.from_address:
            missing.append('CONTACT_EMAIL_FROM')
        if settings.EMAIL_BACKEND == SMTP_BACKEND and not settings.EMAIL_HOST:
            missing.append('EMAIL_HOST')

        if missing:
            raise MailerNotConfigured(f"Mail transport is not configured (missing {', '.join(missing)})")

    def send(self, envelope):
        """
        Send one envelope.

        Raises:
            MailerError: the backend refused or failed to deliver
        """
        try:
            envelope.to_message().send(fail_silently=False)
        except Exception as exc:
            logger.error(f"Failed to send '{envelope.subject}' to {envelope.to}: {exc}")
            raise MailerError(str(exc)) from exc

        logger.info(f"Email sent successfully to {envelope.to} | Subject: {envelope.subject}")
