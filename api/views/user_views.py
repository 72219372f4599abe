from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..errors import ServiceError
from ..services import UserService
from ..serializers import PullRequestShortSerializer, SetIsActiveSerializer, UserSerializer
from .responses import server_error, service_error, validation_error


@api_view(['POST'])
def user_set_active(request):
    """POST /users/setIsActive - Установить флаг активности пользователя"""
    body = SetIsActiveSerializer(data=request.data)
    if not body.is_valid():
        return validation_error(body.errors)

    try:
        user = UserService().set_user_active_status(
            body.validated_data['user_id'],
            body.validated_data['is_active'],
        )
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return server_error('user_set_active')

    return Response({
        'user': UserSerializer(user).data
    })


@api_view(['GET'])
def users_get_review(request):
    """GET /users/getReview - Получить PR'ы, где пользователь назначен ревьювером"""
    user_id = request.query_params.get('user_id')

    if not user_id:
        return Response({
            'error': {
                'code': 'VALIDATION_ERROR',
                'message': 'user_id parameter is required'
            }
        }, status=status.HTTP_400_BAD_REQUEST)

    try:
        assigned_prs = UserService().get_user_review_assignments(user_id)
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return server_error('users_get_review')

    return Response({
        'user_id': user_id,
        'pull_requests': PullRequestShortSerializer(assigned_prs, many=True).data
    })
