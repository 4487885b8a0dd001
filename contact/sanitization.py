"""
Input intake and sanitization for the contact form.

Everything the rest of the pipeline sees has been through ``sanitize_value``:
trimmed, stripped of markup and HTML-escaped.
"""
from html import unescape

from django.core.exceptions import SuspiciousOperation
from django.http import QueryDict
from django.utils.html import escape, strip_tags
from rest_framework.exceptions import ParseError, UnsupportedMediaType

CONTACT_FIELDS = ('fullName', 'email', 'phone', 'enquiryType', 'message', 'botField')


def sanitize_value(value):
    """
    Recursively sanitize a submitted value.

    Strings are trimmed, stripped of tags and escaped (``& < > " '``).
    Existing entities are decoded before escaping so they are not encoded a
    second time, which keeps the function idempotent. Dicts, lists and tuples
    are sanitized element by element.
    """
    if isinstance(value, dict):
        return {key: sanitize_value(item) for key, item in value.items()}

    if isinstance(value, (list, tuple)):
        return [sanitize_value(item) for item in value]

    if value is None:
        return ''

    text = strip_tags(str(value).strip())
    return escape(unescape(text).strip())


def _querydict_to_dict(data):
    """Flatten a QueryDict: single values stay scalar, repeated keys become lists."""
    flattened = {}
    for key in data.keys():
        values = data.getlist(key)
        flattened[key] = values[0] if len(values) == 1 else values
    return flattened


def parse_submission(request):
    """
    Return the submitted fields as a plain dict, not yet sanitized.

    Form fields win when present; otherwise whatever the JSON body held.
    A body that cannot be parsed counts as an empty submission, including
    one Django refuses for having too many fields or too many bytes.
    """
    try:
        data = request.data
    except (ParseError, UnsupportedMediaType, SuspiciousOperation):
        return {}

    if isinstance(data, QueryDict):
        data = _querydict_to_dict(data)

    return dict(data) if data else {}


def extract_fields(data):
    """Pick the known contact fields, defaulting missing ones to ''."""
    fields = {}
    for name in CONTACT_FIELDS:
        value = data.get(name, '')
        # A field posted several times still has to read as one string
        if isinstance(value, list):
            value = value[-1] if value else ''
        if isinstance(value, dict):
            value = ''
        fields[name] = value
    return fields
