"""
Authorization checks run before every team mutation.

Unrelated actors always get ``NotFound`` rather than ``Forbidden`` so team
and invitation ids cannot be probed across tenants.
"""
import uuid

from django.core.exceptions import ValidationError as DjangoValidationError

from base.exceptions import Forbidden, NotFound
from base.models import Membership, Team, TeamInvitation
from monitoring.metrics import TeamMetrics


def parse_id(value):
    """Return ``value`` as a UUID, or None when it is not one."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _get_or_not_found(queryset, **lookup):
    try:
        return queryset.get(**lookup)
    except (queryset.model.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound()


def _related_team(actor, team_id, action, for_update):
    queryset = Team.objects.select_for_update() if for_update else Team.objects.all()
    try:
        team = _get_or_not_found(queryset, pk=team_id)
    except NotFound:
        TeamMetrics.track_denied(action, team_id, actor.pk, "not_found")
        raise
    if team.owner_id != actor.pk and not Membership.objects.filter(team=team, user=actor).exists():
        TeamMetrics.track_denied(action, team_id, actor.pk, "not_found")
        raise NotFound()
    return team


def require_owner(actor, team_id, action='manage_team', for_update=False):
    """
    Return the team if ``actor`` owns it.

    Raises:
        NotFound: the actor neither owns nor belongs to the team.
        Forbidden: the actor is a member but not the owner.
    """
    team = _related_team(actor, team_id, action, for_update)
    if team.owner_id != actor.pk:
        TeamMetrics.track_denied(action, team_id, actor.pk, "forbidden")
        raise Forbidden()
    return team


def require_membership(actor, team_id, action='view_team', for_update=False):
    """Return the team if ``actor`` owns it or is a member."""
    return _related_team(actor, team_id, action, for_update)


def require_own_invitation(actor, invitation_id, for_update=False):
    """Return the invitation if it is addressed to ``actor``'s email."""
    queryset = TeamInvitation.objects.select_related('team')
    if for_update:
        queryset = queryset.select_for_update()
    return _get_or_not_found(queryset, pk=invitation_id, email__iexact=actor.email)


def teams_for_user(user):
    """Every team the user owns or belongs to, ordered by name."""
    return list(
        Team.objects.for_user(user)
        .with_members()
        .order_by('name', 'created_at')
    )
