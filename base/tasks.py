import logging

from django.conf import settings
from django.core.mail import send_mail

from teamhub.celery import app

logger = logging.getLogger(__name__)


@app.task(bind=True, max_retries=3, default_retry_delay=60)
def send_team_invitation_email(self, invitation_id):
    """
    Email the invitee of a team invitation.
    Returns False when the invitation was accepted or revoked before the task ran.
    """
    from base.models import TeamInvitation

    invitation = TeamInvitation.objects.select_related('team', 'invited_by').filter(id=invitation_id).first()
    if invitation is None:
        logger.info(f"Invitation {invitation_id} no longer exists; email skipped")
        return False

    inviter = invitation.invited_by.get_full_name() or invitation.invited_by.email
    message = (
        f"{inviter} invited you to join the team \"{invitation.team.name}\".\n\n"
        f"Sign in at {settings.FRONTEND_URL} to accept or decline the invitation."
    )
    try:
        send_mail(
            subject=f"You're invited to join {invitation.team.name}",
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[invitation.email],
        )
    except OSError as exc:
        logger.warning(f"Sending invitation {invitation_id} failed: {exc}")
        raise self.retry(exc=exc)

    logger.info(f"Invitation email sent to {invitation.email} for team {invitation.team_id}")
    return True
