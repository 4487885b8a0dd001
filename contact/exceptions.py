"""
Contact Form Exceptions

Errors raised by the collaborators the submission pipeline depends on.
Client-side rejections (rate limit, spam, validation) are not exceptions;
they are outcomes of ``ContactSubmissionService.submit``.
"""


class ContactFormError(Exception):
    """Base class for contact form errors."""
    pass


class DependencyError(ContactFormError):
    """A collaborator (database, mail transport) failed. Always a 5xx."""
    pass


class PersistenceError(DependencyError):
    """
    The submission could not be stored.

    ``user_message`` is what the caller sees; it includes the raw database
    error text when the statement could not be prepared at all.
    """

    def __init__(self, user_message, detail=''):
        super().__init__(detail or user_message)
        self.user_message = user_message
        self.detail = detail


class MailerError(DependencyError):
    """Sending a notification email failed."""
    pass


class MailerNotConfigured(MailerError):
    """The mail transport is missing its host, sender or recipient."""
    pass
