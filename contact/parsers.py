"""
Request body parsers for the contact form endpoint.

Browsers post the form either as form fields or as a raw JSON object, and
not every client bothers with the right Content-Type.
"""
import json

from django.conf import settings
from rest_framework.parsers import BaseParser


class LenientJSONParser(BaseParser):
    """
    Parse the body as a JSON object whatever the declared media type.

    Malformed JSON, or JSON that is not an object, yields an empty mapping
    instead of a 400.
    """

    media_type = '*/*'

    def parse(self, stream, media_type=None, parser_context=None):
        parser_context = parser_context or {}
        encoding = parser_context.get('encoding', settings.DEFAULT_CHARSET)

        try:
            data = json.loads(stream.read().decode(encoding))
        except (ValueError, UnicodeDecodeError):
            return {}

        return data if isinstance(data, dict) else {}
