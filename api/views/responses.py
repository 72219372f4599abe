import logging

from rest_framework import status
from rest_framework.response import Response

from ..errors import ServiceError

logger = logging.getLogger(__name__)


def validation_error(errors) -> Response:
    return Response({
        'error': {
            'code': 'VALIDATION_ERROR',
            'message': 'invalid request body',
            'details': errors,
        }
    }, status=status.HTTP_400_BAD_REQUEST)


def service_error(exc: ServiceError) -> Response:
    return Response(exc.as_dict(), status=exc.http_status)


def server_error(view_name: str) -> Response:
    logger.exception("unhandled error in %s", view_name)
    return Response({
        'error': {
            'code': 'INTERNAL_ERROR',
            'message': 'Internal server error'
        }
    }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
