"""
Contact Form Serializers

Validation for contact form submissions. Input reaching these serializers
has already been sanitized.
"""
import re

from rest_framework import serializers

# local-part@domain.tld, no whitespace and a single @
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def _required(message):
    return {'required': message, 'blank': message, 'null': message}


class ContactFormSubmitSerializer(serializers.Serializer):
    """
    Public contact form submission serializer.

    Every field is checked; all failures are reported together. Lengths match
    the contact_form columns and are measured after escaping.
    """

    fullName = serializers.CharField(
        required=True,
        max_length=255,
        error_messages=_required("Full Name is required."),
        help_text="Name of the person contacting us"
    )

    email = serializers.CharField(
        required=True,
        max_length=255,
        error_messages=_required("Valid Email is required."),
        help_text="Valid email address for follow-up"
    )

    phone = serializers.CharField(
        required=True,
        max_length=50,
        error_messages=_required("Phone number is required."),
        help_text="Contact phone number"
    )

    enquiryType = serializers.CharField(
        required=True,
        max_length=100,
        error_messages=_required("Enquiry type is required."),
        help_text="Category of the enquiry"
    )

    message = serializers.CharField(
        required=True,
        error_messages=_required("Message is required."),
        help_text="Message content"
    )

    def validate_email(self, value):
        """Address shape check: something@something.something."""
        if not EMAIL_PATTERN.match(value):
            raise serializers.ValidationError("Please provide a valid email address.")
        return value


def validate_submission(fields):
    """
    Validate sanitized contact fields.

    Returns a dict of field name to message; empty when the input is valid.
    """
    serializer = ContactFormSubmitSerializer(data=fields)
    if serializer.is_valid():
        return {}

    return {field: str(messages[0]) for field, messages in serializer.errors.items()}
