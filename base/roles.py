"""
Team role registry.

Roles are configured with the ``TEAM_ROLES`` setting (role id -> display
label). ``owner`` is reserved: it is always present, always listed first and
never assignable to a member.
"""
from django.conf import settings

OWNER = 'owner'


def roles():
    """Ordered mapping of every role id to its display label."""
    configured = getattr(settings, 'TEAM_ROLES', None) or {'member': 'Member'}
    registry = {OWNER: 'Owner'}
    for key, label in configured.items():
        if key != OWNER:
            registry[key] = label
    return registry


def assignable_roles():
    """Roles that may be given to team members."""
    return {key: label for key, label in roles().items() if key != OWNER}


def default_role():
    """Role given to a user who joins by accepting an invitation."""
    role = getattr(settings, 'TEAM_DEFAULT_ROLE', 'member')
    available = assignable_roles()
    if role not in available:
        return next(iter(available))
    return role
