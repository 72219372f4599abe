from enum import Enum

from rest_framework import status


class ErrorCode(str, Enum):
    TEAM_EXISTS = 'TEAM_EXISTS'
    PR_EXISTS = 'PR_EXISTS'
    PR_MERGED = 'PR_MERGED'
    NOT_ASSIGNED = 'NOT_ASSIGNED'
    NO_CANDIDATE = 'NO_CANDIDATE'
    NOT_FOUND = 'NOT_FOUND'
    INTERNAL_ERROR = 'INTERNAL_ERROR'


class ErrorKind(str, Enum):
    ALREADY_EXISTS = 'ALREADY_EXISTS'
    NOT_FOUND = 'NOT_FOUND'
    INVALID_STATE = 'INVALID_STATE'
    PRECONDITION_FAILED = 'PRECONDITION_FAILED'
    INTERNAL = 'INTERNAL'


_KINDS = {
    ErrorCode.TEAM_EXISTS: ErrorKind.ALREADY_EXISTS,
    ErrorCode.PR_EXISTS: ErrorKind.ALREADY_EXISTS,
    ErrorCode.PR_MERGED: ErrorKind.INVALID_STATE,
    ErrorCode.NOT_ASSIGNED: ErrorKind.PRECONDITION_FAILED,
    ErrorCode.NO_CANDIDATE: ErrorKind.PRECONDITION_FAILED,
    ErrorCode.NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.INTERNAL_ERROR: ErrorKind.INTERNAL,
}

_HTTP_STATUSES = {
    ErrorCode.TEAM_EXISTS: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PR_EXISTS: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PR_MERGED: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_ASSIGNED: status.HTTP_409_CONFLICT,
    ErrorCode.NO_CANDIDATE: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

DEFAULT_MESSAGES = {
    ErrorCode.TEAM_EXISTS: 'team_name already exists',
    ErrorCode.PR_EXISTS: 'PR id already exists',
    ErrorCode.PR_MERGED: 'cannot reassign on merged PR',
    ErrorCode.NOT_ASSIGNED: 'reviewer is not assigned to this PR',
    ErrorCode.NO_CANDIDATE: 'no active replacement candidate in team',
    ErrorCode.NOT_FOUND: 'resource not found',
    ErrorCode.INTERNAL_ERROR: 'Internal server error',
}


class ServiceError(Exception):
    """
    Доменная ошибка сервиса: код + сообщение.

    Сравнивается по коду (exc.code), а не по идентичности объекта.
    """

    def __init__(self, code: ErrorCode, message: str = None):
        self.code = ErrorCode(code)
        self.message = message or DEFAULT_MESSAGES[self.code]
        super().__init__(f"{self.code.value}: {self.message}")

    @property
    def kind(self) -> ErrorKind:
        return _KINDS[self.code]

    @property
    def http_status(self) -> int:
        return _HTTP_STATUSES[self.code]

    def as_dict(self) -> dict:
        return {
            'error': {
                'code': self.code.value,
                'message': self.message,
            }
        }


class StorageError(ServiceError):
    """Сбой хранилища (соединение, нарушение ограничений и т.п.)"""

    def __init__(self, message: str = None):
        super().__init__(ErrorCode.INTERNAL_ERROR, message)


def not_found(message: str) -> ServiceError:
    return ServiceError(ErrorCode.NOT_FOUND, message)
