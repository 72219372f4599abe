import threading

from django.db import connection
from django.test import TestCase, TransactionTestCase

from api.errors import ErrorCode, ServiceError
from api.models import PullRequest, Team
from api.services import PullRequestService
from api.storage import DjangoPRStore
from api.tests.helpers import make_pr, make_user, reviewer_ids

THREAD_TIMEOUT = 30


def run_concurrently(*calls):
    """
    Запускает вызовы в отдельных потоках одновременно

    Returns:
        list: Пары (код результата, значение) в порядке вызовов;
            'OK' для успеха, код ServiceError для доменной ошибки
    """
    barrier = threading.Barrier(len(calls))
    results = [None] * len(calls)

    def worker(index, call):
        try:
            barrier.wait()
            results[index] = ('OK', call())
        except ServiceError as e:
            results[index] = (e.code.value, None)
        finally:
            # У каждого потока свое соединение с БД
            connection.close()

    threads = [threading.Thread(target=worker, args=(index, call)) for index, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(THREAD_TIMEOUT)
    return results


class ConcurrentPullRequestTest(TransactionTestCase):
    """
    Конкурентные запросы к одному PR из разных потоков
    """

    def setUp(self):
        self.team = Team.objects.create(name="backend")
        self.author = make_user("author", self.team)
        self.r1 = make_user("r1", self.team)
        self.r2 = make_user("r2", self.team)

    def test_duplicate_create(self):
        """Один создает PR, второй получает PR_EXISTS"""
        def create():
            return PullRequestService().create_pull_request("pr-1", "Feature", "author")

        results = run_concurrently(create, create)

        self.assertEqual(sorted(code for code, _ in results), ['OK', 'PR_EXISTS'])
        self.assertEqual(PullRequest.objects.filter(pull_request_id="pr-1").count(), 1)
        self.assertEqual(reviewer_ids("pr-1"), {"r1", "r2"})

    def test_concurrent_merge(self):
        """Оба видят MERGED, merged_at проставлен один раз"""
        make_pr("pr-1", self.author, reviewers=[self.r1])

        def merge():
            return PullRequestService().merge_pull_request("pr-1")

        results = run_concurrently(merge, merge)

        self.assertEqual([code for code, _ in results], ['OK', 'OK'])
        self.assertEqual({pr.status for _, pr in results}, {PullRequest.Status.MERGED})

        stored = PullRequest.objects.get(pull_request_id="pr-1")
        self.assertEqual({pr.merged_at for _, pr in results}, {stored.merged_at})

    def test_reassign_same_reviewer(self):
        """Только один из двух запросов снимает ревьювера, второй - NOT_ASSIGNED"""
        make_user("c1", self.team)
        make_user("c2", self.team)
        make_pr("pr-1", self.author, reviewers=[self.r1, self.r2])

        def reassign():
            return PullRequestService().reassign_reviewer("pr-1", "r1")

        results = run_concurrently(reassign, reassign)

        self.assertEqual(sorted(code for code, _ in results), ['NOT_ASSIGNED', 'OK'])

        reviewers = reviewer_ids("pr-1")
        self.assertEqual(len(reviewers), 2)
        self.assertIn("r2", reviewers)
        self.assertNotIn("r1", reviewers)
        self.assertNotIn("author", reviewers)

    def test_reassign_different_reviewers(self):
        """Переназначения разных ревьюверов не дают дублей и не теряют назначения"""
        make_user("c1", self.team)
        make_user("c2", self.team)
        make_pr("pr-1", self.author, reviewers=[self.r1, self.r2])

        def reassign(old_user_id):
            return lambda: PullRequestService().reassign_reviewer("pr-1", old_user_id)

        results = run_concurrently(reassign("r1"), reassign("r2"))

        self.assertEqual([code for code, _ in results], ['OK', 'OK'])
        new_ids = {new_reviewer.user_id for _, (_, new_reviewer) in results}
        self.assertEqual(new_ids, {"c1", "c2"})
        self.assertEqual(reviewer_ids("pr-1"), {"c1", "c2"})


class MissedPreCheckStore(DjangoPRStore):
    """Хранилище, у которого предварительная проверка id PR ничего не находит"""

    def __init__(self):
        self.pre_check_done = False

    def get_by_pr_id(self, pull_request_id, for_update=False):
        if not self.pre_check_done:
            self.pre_check_done = True
            return None
        return super().get_by_pr_id(pull_request_id, for_update)


class UniqueConstraintGuardTest(TestCase):
    def test_constraint_reports_pr_exists(self):
        """Если проверка пропустила дубликат, PR_EXISTS дает ограничение БД"""
        team = Team.objects.create(name="backend")
        author = make_user("author", team)
        reviewer = make_user("reviewer", team)
        make_pr("pr-1", author)

        service = PullRequestService(pr_store=MissedPreCheckStore())

        with self.assertRaises(ServiceError) as context:
            service.create_pull_request("pr-1", "Duplicate", "author")

        self.assertEqual(context.exception.code, ErrorCode.PR_EXISTS)
        self.assertEqual(PullRequest.objects.filter(pull_request_id="pr-1").count(), 1)
        self.assertEqual(reviewer_ids("pr-1"), set())
        self.assertFalse(reviewer.review_links.exists())
