"""
Хранилища команд, пользователей и PR.

Сервисы зависят только от абстрактных UserStore / TeamStore / PRStore /
StatsStore. Реализации Django* работают через ORM; любые ошибки базы
(DatabaseError) превращаются в StorageError и не теряются.
"""
import functools
import logging
from abc import ABC, abstractmethod
from typing import ContextManager, List, Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count

from .errors import ErrorCode, ServiceError, StorageError
from .models import PullRequest, PullRequestReviewer, Team, User

logger = logging.getLogger(__name__)


def _db_errors(method):
    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except DatabaseError as exc:
            # Текст ошибки БД остается в логе, клиенту уходит общее сообщение
            logger.exception("storage failure in %s", method.__qualname__)
            raise StorageError() from exc
    return wrapper


class UserStore(ABC):

    @abstractmethod
    def get_by_user_id(self, user_id: str) -> Optional[User]:
        """Пользователь по внешнему id или None"""

    @abstractmethod
    def get_by_team(self, team_id: int) -> List[User]:
        """Все участники команды (активные и нет)"""

    @abstractmethod
    def create(self, user_id: str, username: str, is_active: bool, team: Team) -> User:
        ...

    @abstractmethod
    def update(self, user: User) -> User:
        ...

    @abstractmethod
    def set_is_active(self, user_id: str, is_active: bool) -> bool:
        """Возвращает False, если пользователь не найден"""

    @abstractmethod
    def deactivate_by_team(self, team_id: int) -> int:
        """Деактивирует всех участников команды, возвращает их число"""

    @abstractmethod
    def list_review_prs(self, user: User) -> List[PullRequest]:
        ...


class TeamStore(ABC):

    @abstractmethod
    def atomic(self) -> ContextManager:
        ...

    @abstractmethod
    def create(self, name: str) -> Team:
        """Создает команду; TEAM_EXISTS, если имя занято"""

    @abstractmethod
    def get_by_id(self, team_id: int) -> Optional[Team]:
        ...

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[Team]:
        ...

    @abstractmethod
    def get_with_members(self, team_id: int) -> Optional[Team]:
        ...


class PRStore(ABC):

    @abstractmethod
    def atomic(self) -> ContextManager:
        """Единица работы: все изменения внутри применяются целиком или никак"""

    @abstractmethod
    def create(self, pull_request_id: str, name: str, author: User) -> PullRequest:
        """Создает PR в статусе OPEN; PR_EXISTS, если id занят"""

    @abstractmethod
    def get_by_pr_id(self, pull_request_id: str, for_update: bool = False) -> Optional[PullRequest]:
        """
        PR по внешнему id вместе с автором и текущими ревьюверами.

        for_update=True блокирует строку PR до конца транзакции.
        """

    @abstractmethod
    def mark_merged(self, pr: PullRequest, merged_at) -> bool:
        """OPEN -> MERGED; False, если PR уже был MERGED"""

    @abstractmethod
    def add_reviewer(self, pr: PullRequest, reviewer: User) -> None:
        ...

    @abstractmethod
    def remove_reviewer(self, pr: PullRequest, reviewer: User) -> None:
        """NOT_ASSIGNED, если пользователь не был ревьювером PR"""

    @abstractmethod
    def list_reviewers(self, pr: PullRequest) -> List[User]:
        ...


class StatsStore(ABC):

    @abstractmethod
    def total_prs(self) -> int:
        ...

    @abstractmethod
    def total_users(self) -> int:
        ...

    @abstractmethod
    def active_users(self) -> int:
        ...

    @abstractmethod
    def prs_by_status(self) -> dict:
        ...

    @abstractmethod
    def top_reviewers(self, limit: int) -> list:
        ...


class DjangoUserStore(UserStore):

    @_db_errors
    def get_by_user_id(self, user_id):
        return User.objects.select_related('team').filter(user_id=user_id).first()

    @_db_errors
    def get_by_team(self, team_id):
        return list(User.objects.filter(team_id=team_id).order_by('id'))

    @_db_errors
    def create(self, user_id, username, is_active, team):
        return User.objects.create(
            user_id=user_id,
            username=username,
            is_active=is_active,
            team=team,
        )

    @_db_errors
    def update(self, user):
        user.save(update_fields=['username', 'is_active', 'team'])
        return user

    @_db_errors
    def set_is_active(self, user_id, is_active):
        return User.objects.filter(user_id=user_id).update(is_active=is_active) > 0

    @_db_errors
    def deactivate_by_team(self, team_id):
        return User.objects.filter(team_id=team_id).update(is_active=False)

    @_db_errors
    def list_review_prs(self, user):
        return list(
            PullRequest.objects
            .filter(reviewer_links__reviewer=user)
            .select_related('author')
            .order_by('created_at', 'id')
        )


class DjangoTeamStore(TeamStore):

    def atomic(self):
        return transaction.atomic()

    @_db_errors
    def create(self, name):
        try:
            with transaction.atomic():
                return Team.objects.create(name=name)
        except IntegrityError:
            raise ServiceError(ErrorCode.TEAM_EXISTS)

    @_db_errors
    def get_by_id(self, team_id):
        return Team.objects.filter(pk=team_id).first()

    @_db_errors
    def get_by_name(self, name):
        return Team.objects.filter(name=name).first()

    @_db_errors
    def get_with_members(self, team_id):
        return Team.objects.prefetch_related('members').filter(pk=team_id).first()


class DjangoPRStore(PRStore):

    def atomic(self):
        return transaction.atomic()

    @_db_errors
    def create(self, pull_request_id, name, author):
        # Гарантия уникальности - ограничение в БД, а не предварительная проверка
        try:
            with transaction.atomic():
                return PullRequest.objects.create(
                    pull_request_id=pull_request_id,
                    name=name,
                    author=author,
                )
        except IntegrityError:
            raise ServiceError(ErrorCode.PR_EXISTS)

    @_db_errors
    def get_by_pr_id(self, pull_request_id, for_update=False):
        queryset = PullRequest.objects.filter(pull_request_id=pull_request_id)
        if for_update:
            queryset = queryset.select_for_update()
        return queryset.prefetch_related('author', 'reviewers').first()

    @_db_errors
    def mark_merged(self, pr, merged_at):
        updated = (
            PullRequest.objects
            .filter(pk=pr.pk, status=PullRequest.Status.OPEN)
            .update(status=PullRequest.Status.MERGED, merged_at=merged_at)
        )
        return updated == 1

    @_db_errors
    def add_reviewer(self, pr, reviewer):
        try:
            with transaction.atomic():
                PullRequestReviewer.objects.create(pull_request=pr, reviewer=reviewer)
        except IntegrityError as exc:
            logger.error(
                "reviewer %s is already assigned to PR %s", reviewer.user_id, pr.pull_request_id
            )
            raise StorageError() from exc

    @_db_errors
    def remove_reviewer(self, pr, reviewer):
        deleted, _ = PullRequestReviewer.objects.filter(pull_request=pr, reviewer=reviewer).delete()
        if not deleted:
            raise ServiceError(ErrorCode.NOT_ASSIGNED)

    @_db_errors
    def list_reviewers(self, pr):
        return list(User.objects.filter(review_links__pull_request=pr).order_by('id'))


class DjangoStatsStore(StatsStore):

    @_db_errors
    def total_prs(self):
        return PullRequest.objects.count()

    @_db_errors
    def total_users(self):
        return User.objects.count()

    @_db_errors
    def active_users(self):
        return User.objects.filter(is_active=True).count()

    @_db_errors
    def prs_by_status(self):
        counts = {status: 0 for status in PullRequest.Status.values}
        rows = PullRequest.objects.values('status').annotate(total=Count('id'))
        for row in rows:
            counts[row['status']] = row['total']
        return counts

    @_db_errors
    def top_reviewers(self, limit):
        rows = (
            User.objects
            .annotate(review_count=Count('review_links'))
            .filter(review_count__gt=0)
            .order_by('-review_count', 'user_id')
            .values('user_id', 'username', 'review_count')[:limit]
        )
        return list(rows)
