from django.test import TestCase

from api.models import Team, PullRequest
from api.services import StatsService
from api.tests.helpers import make_pr, make_user


class StatsServiceTest(TestCase):
    def setUp(self):
        self.service = StatsService()

    def test_empty_stats(self):
        stats = self.service.get_review_stats()

        self.assertEqual(stats['total_prs'], 0)
        self.assertEqual(stats['total_users'], 0)
        self.assertEqual(stats['active_users'], 0)
        self.assertEqual(stats['prs_by_status'], {'OPEN': 0, 'MERGED': 0})
        self.assertEqual(stats['top_reviewers'], [])

    def test_review_stats(self):
        team = Team.objects.create(name="backend")
        author = make_user("a", team)
        bob = make_user("b", team, username="Bob")
        carol = make_user("c", team, username="Carol", is_active=False)

        make_pr("pr-1", author, reviewers=[bob, carol])
        make_pr("pr-2", author, reviewers=[bob], status=PullRequest.Status.MERGED)
        make_pr("pr-3", author)

        stats = self.service.get_review_stats()

        self.assertEqual(stats['total_prs'], 3)
        self.assertEqual(stats['total_users'], 3)
        self.assertEqual(stats['active_users'], 2)
        self.assertEqual(stats['prs_by_status'], {'OPEN': 2, 'MERGED': 1})
        self.assertEqual(stats['top_reviewers'], [
            {'user_id': 'b', 'username': 'Bob', 'review_count': 2},
            {'user_id': 'c', 'username': 'Carol', 'review_count': 1},
        ])

    def test_top_reviewers_limit(self):
        team = Team.objects.create(name="backend")
        author = make_user("a", team)
        reviewers = [make_user(f"r{i}", team) for i in range(5)]
        make_pr("pr-1", author, reviewers=reviewers)

        stats = self.service.get_review_stats(top_limit=3)

        self.assertEqual([row['user_id'] for row in stats['top_reviewers']], ['r0', 'r1', 'r2'])
