"""
Monitoring for team workflows.
Integrates with Sentry so membership changes and failed cascades carry context.
"""
from sentry_sdk import capture_message, capture_exception, set_tag, set_context
import logging

logger = logging.getLogger(__name__)


class TeamMetrics:
    """Report team workflow events to Sentry"""

    @staticmethod
    def track_team_event(action, team_id, actor_id, **context):
        """
        Record a completed team state transition.

        Args:
            action: Workflow step (team_created, invitation_sent, member_removed, ...)
            team_id: ID of the team the action applied to
            actor_id: ID of the user who performed it
            **context: Extra details (email, role, member_id, ...)
        """
        try:
            set_tag("team_action", action)
            set_context("team_event", {
                "team_id": str(team_id),
                "actor_id": str(actor_id),
                "action": action,
                **{key: str(value) for key, value in context.items()},
            })
            logger.info(f"Team event {action} on team {team_id} by {actor_id}")
        except Exception as e:
            logger.error(f"Error tracking team event: {str(e)}")

    @staticmethod
    def track_denied(action, team_id, actor_id, reason):
        """
        Record an authorization refusal.

        Args:
            action: Workflow step that was refused
            team_id: Requested team ID (may not exist)
            actor_id: ID of the user who was refused
            reason: "not_found" or "forbidden"
        """
        try:
            set_tag("team_action", action)
            set_tag("denied_reason", reason)
            logger.warning(f"Denied {action} on team {team_id} for {actor_id}: {reason}")
            if reason == "forbidden":
                capture_message(
                    f"Team member attempted owner-only action: {action}",
                    level="info"
                )
        except Exception as e:
            logger.error(f"Error tracking denied action: {str(e)}")

    @staticmethod
    def track_cascade_failure(error, team_id):
        """
        Capture a rolled-back team deletion.

        Args:
            error: The database exception raised during the cascade
            team_id: ID of the team that survived
        """
        try:
            set_tag("component", "team_lifecycle")
            set_tag("team_id", str(team_id))
            set_context("cascade", {"team_id": str(team_id), "stage": "delete"})
            capture_exception(error)
            logger.error(f"Team deletion rolled back for {team_id}: {str(error)}")
        except Exception as e:
            logger.error(f"Error in cascade failure tracking: {str(e)}")
