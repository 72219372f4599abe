from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from ..errors import ServiceError
from ..services import PullRequestService
from ..serializers import (
    PullRequestCreateSerializer,
    PullRequestMergeSerializer,
    PullRequestReassignSerializer,
    PullRequestSerializer,
)
from .responses import server_error, service_error, validation_error


@api_view(['POST'])
def pullrequest_create(request):
    """POST /pullRequest/create - Создать PR"""
    body = PullRequestCreateSerializer(data=request.data)
    if not body.is_valid():
        return validation_error(body.errors)

    try:
        pr = PullRequestService().create_pull_request(
            body.validated_data['pull_request_id'],
            body.validated_data['pull_request_name'],
            body.validated_data['author_id'],
        )
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return server_error('pullrequest_create')

    return Response({
        'pr': PullRequestSerializer(pr).data
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
def pullrequest_merge(request):
    """POST /pullRequest/merge - Пометить PR как MERGED"""
    body = PullRequestMergeSerializer(data=request.data)
    if not body.is_valid():
        return validation_error(body.errors)

    try:
        pr = PullRequestService().merge_pull_request(body.validated_data['pull_request_id'])
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return server_error('pullrequest_merge')

    return Response({
        'pr': PullRequestSerializer(pr).data
    })


@api_view(['POST'])
def pullrequest_reassign(request):
    """POST /pullRequest/reassign - Переназначить ревьювера"""
    body = PullRequestReassignSerializer(data=request.data)
    if not body.is_valid():
        return validation_error(body.errors)

    try:
        pr, new_reviewer = PullRequestService().reassign_reviewer(
            body.validated_data['pull_request_id'],
            body.validated_data['old_reviewer_id'],
        )
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return server_error('pullrequest_reassign')

    return Response({
        'pr': PullRequestSerializer(pr).data,
        'replaced_by': new_reviewer.user_id
    })
