"""
Team invitations: owners invite by email, invitees accept or decline.
"""
import logging

from django.db import IntegrityError, transaction

from base.exceptions import Conflict, NotFound, ValidationError
from base.guards import parse_id, require_own_invitation, require_owner, teams_for_user
from base.models import Membership, TeamInvitation
from base.roles import default_role
from base.serializers import InvitationEmailSerializer, validated
from base.tasks import send_team_invitation_email
from monitoring.metrics import TeamMetrics

logger = logging.getLogger(__name__)

ALREADY_INVITED = 'That user is already invited to the team.'


def send_invitation(actor, team_id, email):
    """
    Invite ``email`` to the team (owner only).

    The duplicate check and the insert run under the team row lock, and the
    unique (team, email) constraint catches whatever slips past the check.

    Returns:
        The team reloaded with its members and invitations.
    """
    with transaction.atomic():
        team = require_owner(actor, team_id, action='send_invitation', for_update=True)
        email = validated(InvitationEmailSerializer, {'email': email})['email']

        if actor.email.lower() == email or team.memberships.filter(user__email__iexact=email).exists():
            raise ValidationError({'email': ['That user is already on the team.']})
        if team.invitations.filter(email=email).exists():
            raise Conflict({'email': [ALREADY_INVITED]})

        try:
            with transaction.atomic():
                invitation = TeamInvitation.objects.create(team=team, email=email, invited_by=actor)
        except IntegrityError:
            logger.warning(f"Concurrent invitation for {email} on team {team.pk} rejected")
            raise Conflict({'email': [ALREADY_INVITED]})

        transaction.on_commit(lambda: send_team_invitation_email.delay(str(invitation.id)))

    logger.info(f"Invitation {invitation.id} sent to {email} for team {team.pk}")
    TeamMetrics.track_team_event('invitation_sent', team.pk, actor.pk, email=email)
    return team.fresh()


def accept_invitation(actor, invitation_id):
    """
    Join the team an invitation addressed to ``actor`` belongs to.

    Safe to repeat: an existing membership counts as already applied, and an
    invitation this actor already consumed resolves to the current team list.

    Returns:
        Every team the actor owns or belongs to.
    """
    with transaction.atomic():
        try:
            invitation = require_own_invitation(actor, invitation_id, for_update=True)
        except NotFound:
            consumed_id = parse_id(invitation_id)
            if consumed_id and Membership.objects.filter(user=actor, invitation_id=consumed_id).exists():
                logger.info(f"Invitation {invitation_id} was already accepted by {actor.pk}")
                return teams_for_user(actor)
            raise

        team = invitation.team
        if team.owner_id != actor.pk:
            try:
                with transaction.atomic():
                    Membership.objects.create(
                        team=team,
                        user=actor,
                        role=default_role(),
                        invitation_id=invitation.id,
                    )
            except IntegrityError:
                logger.info(f"{actor.pk} is already a member of team {team.pk}")

        invitation.delete()

    logger.info(f"Invitation {invitation_id} accepted by {actor.pk}")
    TeamMetrics.track_team_event('invitation_accepted', team.pk, actor.pk)
    return teams_for_user(actor)


def revoke_invitation(actor, team_id, invitation_id):
    """
    Delete one of the team's invitations (owner only).

    Unknown ids, or ids of another team's invitation, change nothing.
    """
    with transaction.atomic():
        team = require_owner(actor, team_id, action='revoke_invitation')
        target = parse_id(invitation_id)
        deleted = 0
        if target is not None:
            deleted, _ = TeamInvitation.objects.filter(team=team, pk=target).delete()

    if deleted:
        logger.info(f"Invitation {invitation_id} revoked on team {team.pk}")
        TeamMetrics.track_team_event('invitation_revoked', team.pk, actor.pk)
    return team.fresh()


def revoke_own_invitation(actor, invitation_id):
    """Decline an invitation addressed to ``actor``."""
    with transaction.atomic():
        invitation = require_own_invitation(actor, invitation_id, for_update=True)
        team_id = invitation.team_id
        invitation.delete()

    logger.info(f"Invitation {invitation_id} declined by {actor.pk}")
    TeamMetrics.track_team_event('invitation_declined', team_id, actor.pk)


def pending_invitations_for(user):
    return (
        TeamInvitation.objects.filter(email__iexact=user.email)
        .select_related('team', 'invited_by')
        .order_by('-created_at')
    )
