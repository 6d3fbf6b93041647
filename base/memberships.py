"""
Member roles, removal, leaving, and the user's current team.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from base.exceptions import Forbidden, NotFound
from base.guards import parse_id, require_membership, require_owner, teams_for_user
from base.models import Membership
from base.serializers import MemberRoleSerializer, validated
from monitoring.metrics import TeamMetrics

logger = logging.getLogger(__name__)

User = get_user_model()


def _membership_or_not_found(team, user_id, for_update=False):
    target = parse_id(user_id)
    queryset = Membership.objects.select_for_update() if for_update else Membership.objects.all()
    membership = queryset.filter(team=team, user_id=target).first() if target else None
    if membership is None:
        raise NotFound()
    return membership


def _detach(membership):
    """Delete a membership and clear the user's pointer if it referenced the team."""
    team_id = membership.team_id
    membership.delete()
    return User.objects.filter(pk=membership.user_id, current_team_id=team_id).update(current_team=None)


def update_member_role(actor, team_id, member_id, role):
    """
    Give a member another assignable role (owner only). Setting the role a
    member already has is a no-op.
    """
    with transaction.atomic():
        team = require_owner(actor, team_id, action='update_member_role', for_update=True)
        membership = _membership_or_not_found(team, member_id, for_update=True)
        role = validated(MemberRoleSerializer, {'role': role})['role']

        if membership.role != role:
            membership.role = role
            membership.save(update_fields=['role', 'updated_at'])
            logger.info(f"Member {member_id} on team {team.pk} is now {role}")
            TeamMetrics.track_team_event('member_role_updated', team.pk, actor.pk, member_id=member_id, role=role)

    return team.fresh()


def remove_member(actor, team_id, member_id):
    """
    Remove a member from the team (owner only).

    The owner has no membership row, so targeting the owner is ``NotFound``.
    """
    with transaction.atomic():
        team = require_owner(actor, team_id, action='remove_member', for_update=True)
        membership = _membership_or_not_found(team, member_id, for_update=True)
        cleared = _detach(membership)

    logger.info(f"Member {member_id} removed from team {team.pk} (current team cleared: {bool(cleared)})")
    TeamMetrics.track_team_event('member_removed', team.pk, actor.pk, member_id=member_id)
    return team.fresh()


def leave_team(actor, team_id):
    """
    Leave a team the actor belongs to. Owners cannot leave; they delete the
    team instead.

    Returns:
        The actor's remaining teams.
    """
    with transaction.atomic():
        team = require_membership(actor, team_id, action='leave_team', for_update=True)
        if team.owner_id == actor.pk:
            TeamMetrics.track_denied('leave_team', team.pk, actor.pk, "forbidden")
            raise Forbidden('Owner cannot leave. Delete the team instead.')
        membership = _membership_or_not_found(team, actor.pk, for_update=True)
        cleared = _detach(membership)

    if cleared:
        actor.current_team = None
    logger.info(f"{actor.pk} left team {team.pk}")
    TeamMetrics.track_team_event('member_left', team.pk, actor.pk)
    return teams_for_user(actor)


def switch_current_team(actor, team_id):
    """Make the team the actor's current context. Repeating it changes nothing."""
    with transaction.atomic():
        team = require_membership(actor, team_id, action='switch_team', for_update=True)
        actor.switch_to_team(team)
    logger.info(f"{actor.pk} switched to team {team.pk}")
    return team
