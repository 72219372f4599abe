from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..errors import ServiceError
from ..services import StatsService
from ..serializers import StatsSerializer
from .responses import server_error, service_error


@api_view(['GET'])
def stats_overview(request):
    """
    GET /stats - Общая статистика системы
    """
    try:
        stats = StatsService().get_review_stats()
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return server_error('stats_overview')

    return Response(StatsSerializer(stats).data)
