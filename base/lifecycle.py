"""
Creating, renaming and deleting teams.
"""
import logging
from functools import lru_cache

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils.module_loading import import_string

from base.exceptions import TeamCascadeError
from base.guards import require_membership, require_owner, teams_for_user
from base.models import Membership, Team, TeamInvitation
from base.serializers import TeamNameSerializer, validated
from base.signals import team_deleting
from monitoring.metrics import TeamMetrics

logger = logging.getLogger(__name__)

User = get_user_model()


class TeamUpdater:
    """
    Strategy that validates and persists a team update.

    Implementations raise ``base.exceptions.ValidationError`` for bad input.
    """

    def update(self, team, data):
        raise NotImplementedError


class DefaultTeamUpdater(TeamUpdater):
    """Validates the name (required, at most 255 characters) and saves it."""

    def update(self, team, data):
        team.name = validated(TeamNameSerializer, data)['name']
        team.save(update_fields=['name', 'updated_at'])
        return team


@lru_cache(maxsize=None)
def get_team_updater():
    """The updater named by ``TEAM_UPDATER``, built once per process."""
    path = getattr(settings, 'TEAM_UPDATER', 'base.lifecycle.DefaultTeamUpdater')
    return import_string(path)()


class TeamLifecycle:
    """Team create / show / rename / delete for an authenticated actor."""

    def __init__(self, updater=None):
        self.updater = updater or get_team_updater()

    def create_team(self, actor, name):
        """
        Create a team owned by ``actor``. The owner gets no membership row.

        Returns:
            Every team the actor owns or belongs to.
        """
        name = validated(TeamNameSerializer, {'name': name})['name']
        team = Team.objects.create(name=name, owner=actor)

        logger.info(f"Team {team.pk} ({name}) created by {actor.pk}")
        TeamMetrics.track_team_event('team_created', team.pk, actor.pk, name=name)
        return teams_for_user(actor)

    def get_team(self, actor, team_id):
        team = require_membership(actor, team_id, action='view_team')
        return team.fresh()

    def rename_team(self, actor, team_id, name, extra=None):
        """
        Update the team through the configured updater (owner only).

        Args:
            actor: Authenticated user
            team_id: Team to update
            name: New team name
            extra: Other submitted fields, passed through to custom updaters
        """
        data = {**(extra or {}), 'name': name}
        with transaction.atomic():
            team = require_owner(actor, team_id, action='rename_team', for_update=True)
            self.updater.update(team, data)

        logger.info(f"Team {team.pk} updated by {actor.pk}")
        TeamMetrics.track_team_event('team_renamed', team.pk, actor.pk, name=team.name)
        return team.fresh()

    def delete_team(self, actor, team_id):
        """
        Delete the team and everything hanging off it (owner only).

        ``team_deleting`` is sent first, while the team is intact. The
        cascade then clears current-team pointers and removes memberships,
        invitations and the team in one transaction; any database error rolls
        all of it back and is raised as ``TeamCascadeError``.

        Returns:
            The actor's remaining teams.
        """
        with transaction.atomic():
            team = require_owner(actor, team_id, action='delete_team', for_update=True)
            team_pk = team.pk

            team_deleting.send(sender=Team, team=team, actor=actor)

            try:
                with transaction.atomic():
                    cleared = User.objects.filter(current_team=team).update(current_team=None)
                    Membership.objects.filter(team=team).delete()
                    TeamInvitation.objects.filter(team=team).delete()
                    team.delete()
            except DatabaseError as e:
                TeamMetrics.track_cascade_failure(e, team_pk)
                raise TeamCascadeError() from e

        if actor.current_team_id == team_pk:
            actor.current_team = None
        logger.info(f"Team {team_pk} deleted by {actor.pk} ({cleared} current-team pointers cleared)")
        TeamMetrics.track_team_event('team_deleted', team_pk, actor.pk)
        return teams_for_user(actor)
