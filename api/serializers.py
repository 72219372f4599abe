from rest_framework import serializers
from .models import Team, User, PullRequest


class TeamMemberSerializer(serializers.ModelSerializer):
    user_id = serializers.CharField()
    username = serializers.CharField()
    is_active = serializers.BooleanField()

    class Meta:
        model = User
        fields = ['user_id', 'username', 'is_active']


class TeamSerializer(serializers.ModelSerializer):
    team_id = serializers.IntegerField(source='id')
    team_name = serializers.CharField(source='name')
    members = TeamMemberSerializer(many=True, source='members.all')

    class Meta:
        model = Team
        fields = ['team_id', 'team_name', 'members']


class UserSerializer(serializers.ModelSerializer):
    user_id = serializers.CharField()
    username = serializers.CharField()
    team_name = serializers.SerializerMethodField()
    is_active = serializers.BooleanField()

    class Meta:
        model = User
        fields = ['user_id', 'username', 'team_name', 'is_active']

    @staticmethod
    def get_team_name(obj):
        return obj.team.name if obj.team else None


class PullRequestSerializer(serializers.ModelSerializer):
    pull_request_id = serializers.CharField()
    pull_request_name = serializers.CharField(source='name')
    author_id = serializers.CharField(source='author.user_id')
    status = serializers.CharField()
    assigned_reviewers = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', format='%Y-%m-%dT%H:%M:%SZ')
    mergedAt = serializers.DateTimeField(source='merged_at', format='%Y-%m-%dT%H:%M:%SZ', allow_null=True)

    class Meta:
        model = PullRequest
        fields = [
            'pull_request_id', 'pull_request_name', 'author_id',
            'status', 'assigned_reviewers', 'createdAt', 'mergedAt'
        ]

    @staticmethod
    def get_assigned_reviewers(obj):
        return [reviewer.user_id for reviewer in obj.reviewers.all()]


class PullRequestShortSerializer(serializers.ModelSerializer):
    pull_request_id = serializers.CharField()
    pull_request_name = serializers.CharField(source='name')
    author_id = serializers.CharField(source='author.user_id')
    status = serializers.CharField()

    class Meta:
        model = PullRequest
        fields = ['pull_request_id', 'pull_request_name', 'author_id', 'status']


# Тела запросов

class TeamMemberInputSerializer(serializers.Serializer):
    user_id = serializers.CharField(max_length=50)
    username = serializers.CharField(max_length=100)
    is_active = serializers.BooleanField()


class TeamAddSerializer(serializers.Serializer):
    team_name = serializers.CharField(max_length=100)
    members = TeamMemberInputSerializer(many=True, required=False, default=list)

    def validate_members(self, members):
        user_ids = [member['user_id'] for member in members]
        if len(user_ids) != len(set(user_ids)):
            raise serializers.ValidationError('duplicate user_id in members')
        return members


class TeamDeactivateSerializer(serializers.Serializer):
    team_id = serializers.IntegerField()


class SetIsActiveSerializer(serializers.Serializer):
    user_id = serializers.CharField()
    is_active = serializers.BooleanField()


class PullRequestCreateSerializer(serializers.Serializer):
    pull_request_id = serializers.CharField(max_length=100)
    pull_request_name = serializers.CharField(max_length=200)
    author_id = serializers.CharField()


class PullRequestMergeSerializer(serializers.Serializer):
    pull_request_id = serializers.CharField()


class PullRequestReassignSerializer(serializers.Serializer):
    pull_request_id = serializers.CharField()
    old_reviewer_id = serializers.CharField()


# Статистика

class TopReviewerSerializer(serializers.Serializer):
    user_id = serializers.CharField()
    username = serializers.CharField()
    review_count = serializers.IntegerField()


class StatsSerializer(serializers.Serializer):
    total_prs = serializers.IntegerField()
    total_users = serializers.IntegerField()
    active_users = serializers.IntegerField()
    prs_by_status = serializers.DictField(child=serializers.IntegerField())
    top_reviewers = TopReviewerSerializer(many=True)
