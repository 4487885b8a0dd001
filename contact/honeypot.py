"""
Honeypot check for the contact form.

The frontend renders ``botField`` hidden from people; automated form fillers
tend to populate every input they find.
"""

HONEYPOT_FIELD = 'botField'


def is_honeypot_filled(fields):
    """True when the hidden field came back with anything in it."""
    return bool(fields.get(HONEYPOT_FIELD))
