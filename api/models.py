from django.db import models


class Team(models.Model):
    name = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'teams'


class User(models.Model):
    user_id = models.CharField(max_length=50, unique=True)
    username = models.CharField(max_length=100)
    team = models.ForeignKey(Team, on_delete=models.PROTECT, related_name='members', null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.username} ({self.user_id})"

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['team', 'is_active'], name='idx_users_team_active'),
        ]


class PullRequest(models.Model):
    class Status(models.TextChoices):
        OPEN = 'OPEN', 'Open'
        MERGED = 'MERGED', 'Merged'

    pull_request_id = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=200)
    author = models.ForeignKey(User, on_delete=models.PROTECT, related_name='authored_prs')
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.OPEN)
    reviewers = models.ManyToManyField(
        User,
        through='PullRequestReviewer',
        related_name='assigned_prs',
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    merged_at = models.DateTimeField(null=True, blank=True)

    @property
    def is_merged(self):
        return self.status == self.Status.MERGED

    def __str__(self):
        return f"{self.name} ({self.pull_request_id})"

    class Meta:
        db_table = 'pull_requests'


class PullRequestReviewer(models.Model):
    pull_request = models.ForeignKey(PullRequest, on_delete=models.CASCADE, related_name='reviewer_links')
    reviewer = models.ForeignKey(User, on_delete=models.PROTECT, related_name='review_links')
    assigned_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.pull_request_id} -> {self.reviewer_id}"

    class Meta:
        db_table = 'pr_reviewers'
        constraints = [
            models.UniqueConstraint(fields=['pull_request', 'reviewer'], name='uq_pr_reviewer'),
        ]
