"""
Contact Form Views

Public endpoint for contact form submissions.
"""
import logging
from functools import partial

from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .parsers import LenientJSONParser
from .rate_limiting import get_client_ip
from .sanitization import parse_submission
from .services import ContactSubmissionService

logger = logging.getLogger(__name__)


class ContactFormSubmitView(APIView):
    """
    Public endpoint for contact form submissions.

    POST /api/contact/submit

    Accepts form fields or a JSON object with fullName, email, phone,
    enquiryType, message and botField. No authentication required.
    One accepted submission per session per minute.
    """

    authentication_classes = []
    permission_classes = [AllowAny]
    parser_classes = [FormParser, MultiPartParser, LenientJSONParser]
    http_method_names = ['post']

    def post(self, request):
        """Submit a contact form."""
        service = ContactSubmissionService(request.session)
        # Body is parsed lazily, after the rate limit check
        result = service.submit(partial(parse_submission, request))

        if result.status_code >= 500:
            logger.error(
                f"Contact form submission from {get_client_ip(request)} ended in {result.outcome}"
            )

        return Response(result.body, status=result.status_code, headers=result.headers)

    def http_method_not_allowed(self, request, *args, **kwargs):
        return Response(
            {'message': "Page not found."},
            status=status.HTTP_404_NOT_FOUND
        )


class HealthCheckView(APIView):
    """
    Health check endpoint.

    GET /api/health
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({'status': 'ok'})
