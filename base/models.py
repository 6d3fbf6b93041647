import uuid

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.validators import RegexValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .manager import UserManager


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model that uses email as the unique identifier.

    A user owns teams, belongs to teams through memberships, and has at most
    one "current" team whose context is active in the UI.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text=_("Unique identifier for the user")
    )

    email = models.EmailField(
        _("email address"),
        max_length=255,
        unique=True,
        error_messages={
            'unique': _("A user with that email already exists."),
        },
        help_text=_("Required. Enter a valid email address.")
    )

    username = models.CharField(
        _("username"),
        max_length=150,
        unique=True,
        validators=[
            RegexValidator(
                regex=r'^[\w.@+-]+$',
                message=_(
                    'Enter a valid username. This value may contain only letters, numbers, and @/./+/-/_ characters.')
            )
        ],
        help_text=_("Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only."),
        error_messages={
            'unique': _("A user with that username already exists."),
        }
    )

    first_name = models.CharField(_("first name"), max_length=150, blank=True)

    last_name = models.CharField(_("last name"), max_length=150, blank=True)

    is_active = models.BooleanField(
        _("active"),
        default=True,
        help_text=_(
            "Designates whether this user should be treated as active. "
            "Unselect this instead of deleting accounts."
        ),
    )

    is_staff = models.BooleanField(
        _("staff status"),
        default=False,
        help_text=_("Designates whether the user can log into this admin site."),
    )

    date_joined = models.DateTimeField(_("date joined"), default=timezone.now)

    # Which team's context the user is currently viewing; must be owned or joined.
    current_team = models.ForeignKey(
        'Team',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='current_users',
        verbose_name=_("current team"),
        help_text=_("Team whose context is active for this user")
    )

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")

    def __str__(self):
        return self.email

    def clean(self):
        super().clean()
        self.email = self.__class__.objects.normalize_email(self.email)

    def save(self, *args, **kwargs):
        self.email = self.__class__.objects.normalize_email(self.email)
        super().save(*args, **kwargs)

    @property
    def full_name(self):
        """Return the user's full name."""
        return f"{self.first_name} {self.last_name}".strip()

    def get_short_name(self):
        return self.first_name

    def get_full_name(self):
        return self.full_name

    def owns_team(self, team):
        return team.owner_id == self.pk

    def on_team(self, team):
        """Whether the user owns the team or holds a membership in it."""
        return self.owns_team(team) or team.memberships.filter(user=self).exists()

    def all_teams(self):
        return Team.objects.for_user(self)

    def switch_to_team(self, team):
        self.current_team = team
        self.save(update_fields=['current_team'])


class TeamQuerySet(models.QuerySet):

    def for_user(self, user):
        """Teams the user owns or is a member of."""
        return self.filter(Q(owner=user) | Q(memberships__user=user)).distinct()

    def with_members(self):
        return self.select_related('owner').prefetch_related(
            'memberships__user', 'invitations__invited_by'
        )


class Team(models.Model):
    """
    A shared workspace. The owner is implicit and never stored as a membership.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text=_("Unique identifier for the team")
    )

    name = models.CharField(
        _("team name"),
        max_length=255,
        help_text=_("Name of the team")
    )

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='owned_teams',
        verbose_name=_("team owner"),
        help_text=_("User who owns this team and can invite/remove members")
    )

    members = models.ManyToManyField(
        User,
        through='Membership',
        related_name='teams',
        blank=True,
        verbose_name=_("team members"),
        help_text=_("Users who joined this team (the owner is not listed)")
    )

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)

    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    objects = TeamQuerySet.as_manager()

    class Meta:
        verbose_name = _("Team")
        verbose_name_plural = _("Teams")
        ordering = ['name', 'created_at']
        indexes = [
            models.Index(fields=['name'], name='base_team_name_idx'),
        ]

    def __str__(self):
        return self.name

    @property
    def member_count(self):
        """Number of members, excluding the owner."""
        return self.memberships.count()

    def fresh(self):
        """Reload the team with its members and invitations."""
        return Team.objects.with_members().get(pk=self.pk)


class Membership(models.Model):
    """
    A user's seat on a team with a role from the role registry (never "owner").
    """
    team = models.ForeignKey(
        Team,
        on_delete=models.CASCADE,
        related_name='memberships',
        verbose_name=_("team"),
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='memberships',
        verbose_name=_("user"),
    )
    role = models.CharField(_("role"), max_length=50)
    # Invitation consumed to create this membership; lets a repeated accept be recognised.
    invitation_id = models.UUIDField(_("invitation"), null=True, blank=True, editable=False)
    created_at = models.DateTimeField(_("joined at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("Team membership")
        verbose_name_plural = _("Team memberships")
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['team', 'user'],
                name='unique_membership_per_team_user',
            )
        ]

    def __str__(self):
        return f"{self.user_id} in {self.team_id} ({self.role})"


class TeamInvitation(models.Model):
    """
    Pending invitation to join a team, addressed by email. Deleted once
    accepted or revoked.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    team = models.ForeignKey(
        Team,
        on_delete=models.CASCADE,
        related_name='invitations',
        verbose_name=_("team"),
    )
    email = models.EmailField(_("invitee email"), max_length=255)
    invited_by = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='sent_team_invitations',
        verbose_name=_("invited by"),
    )
    created_at = models.DateTimeField(_("created at"), auto_now_add=True)

    class Meta:
        verbose_name = _("Team invitation")
        verbose_name_plural = _("Team invitations")
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['team', 'email'],
                name='unique_invitation_per_team_email',
            )
        ]

    def __str__(self):
        return f"{self.email} → {self.team.name}"
