"""
Project-wide DRF exception handler.

Every API response is JSON, including the ones produced by errors nobody
handled closer to the view.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    Format DRF and unexpected exceptions as ``{"message": ...}``.

    DRF's own handler covers APIException, Http404 and PermissionDenied;
    anything else is logged with its traceback and reported as a 500.
    """
    response = exception_handler(exc, context)

    if response is not None:
        detail = response.data.get('detail') if isinstance(response.data, dict) else None
        if detail is not None:
            response.data = {'message': str(detail)}
        return response

    view = context.get('view')
    logger.error(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
        exc_info=exc
    )
    return Response(
        {'message': 'An unexpected error occurred. Please try again later.'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
