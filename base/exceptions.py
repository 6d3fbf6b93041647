"""
Errors raised by the team workflows.

They are DRF ``APIException`` subclasses, so the default exception handler
turns them into responses at the view boundary.
"""
from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException


class TeamError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _('Team operation failed.')
    default_code = 'team_error'


class NotFound(TeamError):
    """The target does not exist or is outside the actor's teams."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = _('Not found.')
    default_code = 'not_found'


class Forbidden(TeamError):
    """The actor is on the team but is not allowed to do this."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = _('Only the team owner can do this.')
    default_code = 'forbidden'


class ValidationError(TeamError):
    """Malformed input. ``detail`` maps field names to messages."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = _('Invalid input.')
    default_code = 'invalid'


class Conflict(TeamError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = _('That user is already invited to the team.')
    default_code = 'conflict'


class TeamCascadeError(TeamError):
    """Deleting a team failed part way; nothing was changed."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = _('The team could not be deleted.')
    default_code = 'cascade_failed'
