import logging
from typing import List, Optional, Tuple

from django.conf import settings
from django.utils import timezone

from .errors import ErrorCode, ServiceError, not_found
from .models import PullRequest, Team, User
from .selectors import CandidateSelector, RandomCandidateSelector, eligible_pool
from .storage import (
    DjangoPRStore,
    DjangoStatsStore,
    DjangoTeamStore,
    DjangoUserStore,
    PRStore,
    StatsStore,
    TeamStore,
    UserStore,
)

logger = logging.getLogger(__name__)

TOP_REVIEWERS_LIMIT = 10


class TeamService:
    """
    Сервис для управления командами и пользователями
    """

    def __init__(self, team_store: TeamStore = None, user_store: UserStore = None):
        self.team_store = team_store or DjangoTeamStore()
        self.user_store = user_store or DjangoUserStore()

    def create_team_with_members(self, team_name: str, members_data: list) -> Team:
        """
        Создает команду с пользователями

        Args:
            team_name: Название команды
            members_data: Список словарей user_id / username / is_active

        Returns:
            Team: Созданная команда с участниками

        Raises:
            ServiceError: TEAM_EXISTS, если команда уже существует
        """
        with self.team_store.atomic():
            # Проверка - оптимизация, гарантия - уникальность имени в БД
            if self.team_store.get_by_name(team_name) is not None:
                raise ServiceError(ErrorCode.TEAM_EXISTS)

            team = self.team_store.create(team_name)

            for member_data in members_data:
                self._create_or_update_user(team, member_data)

            result = self.team_store.get_with_members(team.pk)

        logger.info("team %s created with %d members", team_name, len(members_data))
        return result

    def _create_or_update_user(self, team: Team, member_data: dict) -> User:
        user_id = member_data['user_id']
        username = member_data['username']
        is_active = member_data['is_active']

        user = self.user_store.get_by_user_id(user_id)
        if user is None:
            return self.user_store.create(user_id, username, is_active, team)

        # Существующий пользователь переезжает в новую команду
        user.username = username
        user.is_active = is_active
        user.team = team
        return self.user_store.update(user)

    def get_team_with_members(self, team_name: str) -> Team:
        team = self.team_store.get_by_name(team_name)
        if team is None:
            raise not_found(f"Team '{team_name}' not found")
        return self.team_store.get_with_members(team.pk)

    def deactivate_team_users(self, team_id: int) -> int:
        """
        Массовая деактивация пользователей команды

        История PR и назначений не меняется. Возвращает число деактивированных.
        """
        if self.team_store.get_by_id(team_id) is None:
            raise not_found(f"Team '{team_id}' not found")

        deactivated = self.user_store.deactivate_by_team(team_id)
        logger.info("deactivated %d users of team %s", deactivated, team_id)
        return deactivated


class UserService:
    """
    Сервис для управления пользователями
    """

    def __init__(self, user_store: UserStore = None):
        self.user_store = user_store or DjangoUserStore()

    def set_user_active_status(self, user_id: str, is_active: bool) -> User:
        if not self.user_store.set_is_active(user_id, is_active):
            raise not_found(f"User '{user_id}' not found")

        logger.info("user %s is_active=%s", user_id, is_active)
        return self.user_store.get_by_user_id(user_id)

    def get_user_review_assignments(self, user_id: str) -> List[PullRequest]:
        user = self.user_store.get_by_user_id(user_id)
        if user is None:
            raise not_found(f"User '{user_id}' not found")
        return self.user_store.list_review_prs(user)


class PullRequestService:
    """
    Сервис для управления Pull Request'ами: создание с автоназначением
    ревьюверов, мерж и переназначение.

    Хранилища и селектор передаются в конструктор; по умолчанию
    используются реализации на Django ORM и случайный селектор.
    """

    def __init__(
        self,
        pr_store: PRStore = None,
        user_store: UserStore = None,
        team_store: TeamStore = None,
        selector: CandidateSelector = None,
        max_reviewers: Optional[int] = None,
    ):
        self.pr_store = pr_store or DjangoPRStore()
        self.user_store = user_store or DjangoUserStore()
        self.team_store = team_store or DjangoTeamStore()
        self.selector = selector or RandomCandidateSelector()
        if max_reviewers is None:
            max_reviewers = settings.SERVICE_CONFIG.max_reviewers
        self.max_reviewers = max_reviewers

    def create_pull_request(self, pr_id: str, pr_name: str, author_id: str) -> PullRequest:
        """
        Создает PR и автоматически назначает до max_reviewers ревьюверов из команды автора

        Args:
            pr_id: ID PR
            pr_name: Название PR
            author_id: ID автора

        Returns:
            PullRequest: Созданный PR с ревьюверами

        Raises:
            ServiceError: PR_EXISTS, если PR уже существует;
                NOT_FOUND, если нет автора или его команды
        """
        with self.pr_store.atomic():
            if self.pr_store.get_by_pr_id(pr_id) is not None:
                raise ServiceError(ErrorCode.PR_EXISTS)

            author = self.user_store.get_by_user_id(author_id)
            if author is None:
                raise not_found(f"Author '{author_id}' not found")

            if author.team_id is None or self.team_store.get_by_id(author.team_id) is None:
                raise not_found(f"Author '{author_id}' has no team")

            pr = self.pr_store.create(pr_id, pr_name, author)

            reviewers = self._assign_reviewers(author)
            for reviewer in reviewers:
                self.pr_store.add_reviewer(pr, reviewer)

            result = self.pr_store.get_by_pr_id(pr_id)

        logger.info("PR %s created by %s with %d reviewers", pr_id, author_id, len(reviewers))
        return result

    def _assign_reviewers(self, author: User) -> list:
        # Активные участники команды автора, кроме самого автора
        pool = eligible_pool(self.user_store.get_by_team(author.team_id), exclude_ids={author.pk})
        return self.selector.select(pool, min(self.max_reviewers, len(pool)))

    def merge_pull_request(self, pr_id: str) -> PullRequest:
        """
        Помечает PR как MERGED. Повторный вызов ничего не меняет.
        """
        with self.pr_store.atomic():
            pr = self.pr_store.get_by_pr_id(pr_id, for_update=True)
            if pr is None:
                raise not_found(f"PR '{pr_id}' not found")

            if pr.is_merged:
                return pr

            # Условное обновление: merged_at проставляется ровно один раз
            if self.pr_store.mark_merged(pr, timezone.now()):
                logger.info("PR %s merged", pr_id)

            return self.pr_store.get_by_pr_id(pr_id)

    def reassign_reviewer(self, pr_id: str, old_user_id: str) -> Tuple[PullRequest, User]:
        """
        Переназначает конкретного ревьювера на другого из его команды

        Args:
            pr_id: ID PR
            old_user_id: ID старого ревьювера

        Returns:
            tuple: (PullRequest, новый ревьювер)

        Raises:
            ServiceError: NOT_FOUND, PR_MERGED, NOT_ASSIGNED, NO_CANDIDATE
        """
        with self.pr_store.atomic():
            # Блокировка строки PR: проверки и пул кандидатов видят одно состояние
            pr = self.pr_store.get_by_pr_id(pr_id, for_update=True)
            if pr is None:
                raise not_found(f"PR '{pr_id}' not found")

            if pr.is_merged:
                raise ServiceError(ErrorCode.PR_MERGED)

            old_reviewer = self.user_store.get_by_user_id(old_user_id)
            if old_reviewer is None:
                raise not_found(f"User '{old_user_id}' not found")

            current_reviewers = self.pr_store.list_reviewers(pr)
            current_ids = {reviewer.pk for reviewer in current_reviewers}
            if old_reviewer.pk not in current_ids:
                raise ServiceError(ErrorCode.NOT_ASSIGNED)

            if old_reviewer.team_id is None or self.team_store.get_by_id(old_reviewer.team_id) is None:
                raise not_found(f"Team of reviewer '{old_user_id}' not found")

            exclude_ids = {pr.author_id, old_reviewer.pk} | current_ids
            pool = eligible_pool(self.user_store.get_by_team(old_reviewer.team_id), exclude_ids)
            if not pool:
                raise ServiceError(ErrorCode.NO_CANDIDATE)

            new_reviewer = self.selector.select(pool, 1)[0]

            self.pr_store.remove_reviewer(pr, old_reviewer)
            self.pr_store.add_reviewer(pr, new_reviewer)

            result = self.pr_store.get_by_pr_id(pr_id)

        logger.info("PR %s: reviewer %s replaced by %s", pr_id, old_user_id, new_reviewer.user_id)
        return result, new_reviewer


class StatsService:
    """
    Сервис для сбора статистики
    """

    def __init__(self, stats_store: StatsStore = None):
        self.stats_store = stats_store or DjangoStatsStore()

    def get_review_stats(self, top_limit: int = TOP_REVIEWERS_LIMIT) -> dict:
        return {
            'total_prs': self.stats_store.total_prs(),
            'total_users': self.stats_store.total_users(),
            'active_users': self.stats_store.active_users(),
            'prs_by_status': self.stats_store.prs_by_status(),
            'top_reviewers': self.stats_store.top_reviewers(top_limit),
        }
