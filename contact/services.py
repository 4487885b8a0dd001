"""
Contact Form Submission Service

Runs one submission through the whole pipeline:

    rate limit -> sanitize -> honeypot -> validate -> store -> notify

Every path ends in a ``SubmissionResult``. Emails are only attempted once the
record is stored; a record that was stored but whose emails failed is kept
and reported as ``NOTIFY_FAILED``, never retried here.
"""
import logging
import time

from django.db import DatabaseError, OperationalError, ProgrammingError
from django.db import models
from rest_framework import status

from .exceptions import MailerError, PersistenceError
from .honeypot import is_honeypot_filled
from .models import ContactFormSubmission
from .notifications import ContactNotifier
from .rate_limiting import SubmissionThrottle
from .sanitization import extract_fields, sanitize_value
from .serializers import validate_submission

logger = logging.getLogger(__name__)

SAVE_FAILED_MESSAGE = "Error saving your message. Please try again later."


class SubmissionOutcome(models.TextChoices):
    COMPLETE = 'complete', 'Complete'
    RATE_LIMITED = 'rate_limited', 'Rate Limited'
    SPAM_REJECTED = 'spam_rejected', 'Spam Rejected'
    VALIDATION_FAILED = 'validation_failed', 'Validation Failed'
    PERSIST_FAILED = 'persist_failed', 'Persist Failed'
    NOTIFY_FAILED = 'notify_failed', 'Notify Failed'


CLIENT_OUTCOMES = {
    SubmissionOutcome.RATE_LIMITED,
    SubmissionOutcome.SPAM_REJECTED,
    SubmissionOutcome.VALIDATION_FAILED,
}


class SubmissionResult:
    """Terminal state of one submission plus the HTTP response it maps to."""

    def __init__(self, outcome, status_code, body, record=None, headers=None):
        self.outcome = outcome
        self.status_code = status_code
        self.body = body
        self.record = record
        self.headers = headers or {}

    def __repr__(self):
        return f"<SubmissionResult {self.outcome} {self.status_code}>"

    @property
    def is_client_error(self):
        return self.outcome in CLIENT_OUTCOMES

    @property
    def is_partial_failure(self):
        """Stored but the submitter and/or operator were never emailed."""
        return self.outcome == SubmissionOutcome.NOTIFY_FAILED and self.record is not None

    @classmethod
    def rate_limited(cls, retry_after):
        return cls(
            SubmissionOutcome.RATE_LIMITED,
            status.HTTP_429_TOO_MANY_REQUESTS,
            {'message': "Please wait a bit before submitting again."},
            headers={'Retry-After': str(retry_after)}
        )

    @classmethod
    def spam_rejected(cls):
        return cls(
            SubmissionOutcome.SPAM_REJECTED,
            status.HTTP_403_FORBIDDEN,
            {'message': "Spam detected."}
        )

    @classmethod
    def validation_failed(cls, errors):
        return cls(
            SubmissionOutcome.VALIDATION_FAILED,
            status.HTTP_400_BAD_REQUEST,
            {'errors': errors}
        )

    @classmethod
    def persist_failed(cls, message):
        return cls(
            SubmissionOutcome.PERSIST_FAILED,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {'message': message}
        )

    @classmethod
    def notify_failed(cls, record, detail):
        return cls(
            SubmissionOutcome.NOTIFY_FAILED,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {'message': f"Mailer Error: {detail}"},
            record=record
        )

    @classmethod
    def complete(cls, record):
        return cls(
            SubmissionOutcome.COMPLETE,
            status.HTTP_200_OK,
            {'message': "Your message has been sent successfully."},
            record=record
        )


class ContactSubmissionService:
    """
    Orchestrates a contact form submission for one session.

    Args:
        session: mutable mapping scoped to the visitor (``request.session``)
        notifier: sends the emails; defaults to ``ContactNotifier()``
        clock: returns the current UNIX time, used by the rate limiter
    """

    def __init__(self, session, notifier=None, clock=time.time):
        self.throttle = SubmissionThrottle(session, clock=clock)
        self.notifier = notifier or ContactNotifier()

    def check_rate_limit(self):
        """Return a RATE_LIMITED result, or None when the session may submit."""
        if self.throttle.is_allowed():
            return None

        retry_after = self.throttle.retry_after()
        logger.info(f"Contact form rate limited, retry after {retry_after}s")
        return SubmissionResult.rate_limited(retry_after)

    def submit(self, data):
        """
        Process raw submitted data.

        Args:
            data: the parsed body as a dict, or a callable returning it. A
                callable is only invoked once the rate limit has passed, so a
                limited session never has its body read.
        """
        limited = self.check_rate_limit()
        if limited:
            return limited

        if callable(data):
            data = data()

        fields = extract_fields(sanitize_value(dict(data)))

        if is_honeypot_filled(fields):
            logger.warning("Contact form honeypot filled, rejecting submission")
            return SubmissionResult.spam_rejected()

        errors = validate_submission(fields)
        if errors:
            logger.info(f"Contact form validation failed for fields: {', '.join(errors)}")
            return SubmissionResult.validation_failed(errors)

        try:
            record = self.store(fields)
        except PersistenceError as exc:
            logger.error(f"Contact form submission not stored: {exc}")
            return SubmissionResult.persist_failed(exc.user_message)

        try:
            self.notify(record)
        except MailerError as exc:
            # The row stays; follow-up on unnotified submissions is manual
            logger.error(f"Contact submission {record.pk} stored but not notified: {exc}")
            return SubmissionResult.notify_failed(record, exc)

        self.throttle.record_submission()
        logger.info(f"Contact submission {record.pk} stored and notified")
        return SubmissionResult.complete(record)

    def store(self, fields):
        """
        Insert the submission.

        Raises:
            PersistenceError: with the database error text when the insert
                could not be prepared, a generic message when it failed to run
        """
        try:
            return ContactFormSubmission.objects.record(
                full_name=fields['fullName'],
                email=fields['email'],
                phone=fields['phone'],
                enquiry_type=fields['enquiryType'],
                message=fields['message'],
            )
        except (OperationalError, ProgrammingError) as exc:
            raise PersistenceError(f"Database error: {exc}", detail=str(exc)) from exc
        except DatabaseError as exc:
            raise PersistenceError(SAVE_FAILED_MESSAGE, detail=str(exc)) from exc

    def notify(self, record):
        """Send the operator notification, then the acknowledgment."""
        self.notifier.check_configuration()
        self.notifier.send(self.notifier.admin_notification(record))
        self.notifier.send(self.notifier.auto_reply(record))
