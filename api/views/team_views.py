from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..errors import ServiceError
from ..services import TeamService
from ..serializers import TeamAddSerializer, TeamDeactivateSerializer, TeamSerializer
from .responses import server_error, service_error, validation_error


@api_view(['POST'])
def team_add(request):
    """POST /team/add - Создать команду с участниками"""
    body = TeamAddSerializer(data=request.data)
    if not body.is_valid():
        return validation_error(body.errors)

    try:
        team = TeamService().create_team_with_members(
            body.validated_data['team_name'],
            body.validated_data['members'],
        )
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return server_error('team_add')

    return Response({
        'team': TeamSerializer(team).data
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
def team_get(request):
    """GET /team/get - Получить команду с участниками"""
    team_name = request.query_params.get('team_name')

    if not team_name:
        return Response({
            'error': {
                'code': 'VALIDATION_ERROR',
                'message': 'team_name parameter is required'
            }
        }, status=status.HTTP_400_BAD_REQUEST)

    try:
        team = TeamService().get_team_with_members(team_name)
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return server_error('team_get')

    return Response(TeamSerializer(team).data)


@api_view(['POST'])
def team_deactivate(request):
    """POST /team/deactivate - Массовая деактивация участников команды"""
    body = TeamDeactivateSerializer(data=request.data)
    if not body.is_valid():
        return validation_error(body.errors)

    team_id = body.validated_data['team_id']
    try:
        deactivated = TeamService().deactivate_team_users(team_id)
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return server_error('team_deactivate')

    return Response({
        'team_id': team_id,
        'deactivated': deactivated
    })
