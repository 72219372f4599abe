import logging

from django.db import DatabaseError, connection
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

logger = logging.getLogger(__name__)


@api_view(['GET'])
def health_check(request):
    """GET /health - Health check"""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except DatabaseError as e:
        logger.warning("health check failed: %s", e)
        return Response({'status': 'unhealthy'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    return Response({'status': 'healthy'})
