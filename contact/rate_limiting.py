"""
Rate Limiting Utilities for Contact Form

Prevents spam and abuse of the contact form: one accepted submission per
session per window.
"""
import time

from django.conf import settings

SESSION_KEY = 'last_contact_form_submission'


def get_client_ip(request):
    """Get client IP address from request."""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip


class SubmissionThrottle:
    """
    Session-scoped submission throttle.

    Works on any mutable mapping (a Django session, a plain dict in tests)
    holding the UNIX timestamp of the last successful submission. The
    timestamp is written only by ``record_submission``, which the service
    calls after the record is stored and both emails are out.

    Two concurrent requests on the same session can both pass the check;
    the later write wins.

    Usage:
        throttle = SubmissionThrottle(request.session)
        if not throttle.is_allowed():
            ...
        throttle.record_submission()
    """

    def __init__(self, session, window_seconds=None, clock=time.time):
        self.session = session
        self.window_seconds = (
            window_seconds if window_seconds is not None
            else getattr(settings, 'CONTACT_FORM_RATE_LIMIT_SECONDS', 60)
        )
        self.clock = clock

    @property
    def last_submission(self):
        return self.session.get(SESSION_KEY, 0)

    def retry_after(self) -> int:
        """Seconds left in the current window, 0 when a submission is allowed."""
        elapsed = int(self.clock()) - int(self.last_submission)
        return max(self.window_seconds - elapsed, 0)

    def is_allowed(self) -> bool:
        return self.retry_after() == 0

    def record_submission(self):
        self.session[SESSION_KEY] = int(self.clock())
