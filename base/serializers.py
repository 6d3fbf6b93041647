from django.contrib.auth import get_user_model
from rest_framework import serializers

from base.exceptions import ValidationError
from base.models import Membership, Team, TeamInvitation
from base.roles import OWNER, assignable_roles

User = get_user_model()


def validated(serializer_class, data, **kwargs):
    """
    Run an input serializer and return its validated data.

    Raises the team ``ValidationError`` (field -> messages) on failure so the
    workflows report malformed input through a single error type.
    """
    serializer = serializer_class(data=data, **kwargs)
    if not serializer.is_valid():
        raise ValidationError(serializer.errors)
    return serializer.validated_data


# ---------- Input ----------

class TeamNameSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)


class InvitationEmailSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=255)

    def validate_email(self, value):
        return value.strip().lower()


class MemberRoleSerializer(serializers.Serializer):
    """Role must be one of the assignable roles; "owner" never is."""
    role = serializers.ChoiceField(choices=[])

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['role'].choices = list(assignable_roles().items())


# ---------- Output ----------

class TeamMemberSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source='user.id', read_only=True)
    name = serializers.CharField(source='user.full_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Membership
        fields = ['id', 'name', 'email', 'role', 'created_at']
        read_only_fields = fields


class TeamInvitationSerializer(serializers.ModelSerializer):
    invited_by_email = serializers.EmailField(source='invited_by.email', read_only=True)

    class Meta:
        model = TeamInvitation
        fields = ['id', 'email', 'invited_by_email', 'created_at']
        read_only_fields = fields


class PendingInvitationSerializer(serializers.ModelSerializer):
    """An invitation as seen by its invitee."""
    team_id = serializers.UUIDField(read_only=True)
    team_name = serializers.CharField(source='team.name', read_only=True)
    invited_by_email = serializers.EmailField(source='invited_by.email', read_only=True)
    invited_by_name = serializers.SerializerMethodField()

    class Meta:
        model = TeamInvitation
        fields = ['id', 'team_id', 'team_name', 'invited_by_email', 'invited_by_name', 'created_at']
        read_only_fields = fields

    def get_invited_by_name(self, obj):
        return obj.invited_by.get_full_name() or obj.invited_by.email


class TeamSerializer(serializers.ModelSerializer):
    """
    Team with its members. Pending invitations are only listed for the owner.
    """
    owner_email = serializers.EmailField(source='owner.email', read_only=True)
    is_owner = serializers.SerializerMethodField()
    role = serializers.SerializerMethodField()
    members = TeamMemberSerializer(source='memberships', many=True, read_only=True)
    invitations = serializers.SerializerMethodField()
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Team
        fields = [
            'id',
            'name',
            'owner',
            'owner_email',
            'is_owner',
            'role',
            'members',
            'invitations',
            'member_count',
            'created_at',
            'updated_at'
        ]
        read_only_fields = fields

    def _actor(self):
        request = self.context.get('request')
        if request is not None:
            return request.user
        return self.context.get('actor')

    def get_is_owner(self, obj):
        actor = self._actor()
        return bool(actor) and obj.owner_id == actor.pk

    def get_role(self, obj):
        """The actor's role on this team."""
        actor = self._actor()
        if not actor:
            return None
        if obj.owner_id == actor.pk:
            return OWNER
        for membership in obj.memberships.all():
            if membership.user_id == actor.pk:
                return membership.role
        return None

    def get_invitations(self, obj):
        if not self.get_is_owner(obj):
            return []
        return TeamInvitationSerializer(obj.invitations.all(), many=True).data

    def get_member_count(self, obj):
        return len(obj.memberships.all())


class CurrentUserSerializer(serializers.ModelSerializer):
    current_team_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'username', 'first_name', 'last_name', 'current_team', 'current_team_name']
        read_only_fields = fields

    def get_current_team_name(self, obj):
        return obj.current_team.name if obj.current_team_id else None
