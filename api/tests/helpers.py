from api.models import PullRequest, PullRequestReviewer, User
from api.selectors import CandidateSelector


class OrderedSelector(CandidateSelector):
    """Детерминированный селектор: первые count кандидатов по user_id"""

    def __init__(self):
        self.calls = []

    def select(self, pool, count):
        self.calls.append(([user.user_id for user in pool], count))
        return sorted(pool, key=lambda user: user.user_id)[:max(count, 0)]


class PickSelector(CandidateSelector):
    """Всегда выбирает заранее заданных пользователей"""

    def __init__(self, *user_ids):
        self.user_ids = user_ids

    def select(self, pool, count):
        by_id = {user.user_id: user for user in pool}
        return [by_id[user_id] for user_id in self.user_ids][:count]


def make_user(user_id, team=None, is_active=True, username=None):
    return User.objects.create(
        user_id=user_id,
        username=username or user_id.capitalize(),
        team=team,
        is_active=is_active,
    )


def make_pr(pr_id, author, reviewers=(), status=PullRequest.Status.OPEN):
    pr = PullRequest.objects.create(pull_request_id=pr_id, name=f"PR {pr_id}", author=author, status=status)
    for reviewer in reviewers:
        PullRequestReviewer.objects.create(pull_request=pr, reviewer=reviewer)
    return pr


def reviewer_ids(pr_id):
    return set(
        PullRequestReviewer.objects
        .filter(pull_request__pull_request_id=pr_id)
        .values_list('reviewer__user_id', flat=True)
    )
