import uuid

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings

from base.exceptions import Forbidden, NotFound
from base.guards import (
    parse_id, require_membership, require_own_invitation, require_owner, teams_for_user,
)
from base.models import Membership, Team, TeamInvitation
from base.roles import assignable_roles, default_role, roles

User = get_user_model()


class RoleRegistryTest(TestCase):
    """Test the role registry."""

    def test_owner_is_listed_first(self):
        self.assertEqual(list(roles())[0], 'owner')
        self.assertIn('member', roles())

    def test_owner_is_not_assignable(self):
        self.assertNotIn('owner', assignable_roles())
        self.assertEqual(assignable_roles(), {'member': 'Member'})

    @override_settings(TEAM_ROLES={'owner': 'Boss', 'admin': 'Admin', 'member': 'Member'})
    def test_configured_owner_label_is_ignored(self):
        registry = roles()
        self.assertEqual(list(registry), ['owner', 'admin', 'member'])
        self.assertEqual(registry['owner'], 'Owner')

    @override_settings(TEAM_ROLES={'editor': 'Editor'}, TEAM_DEFAULT_ROLE='member')
    def test_default_role_falls_back_to_first_assignable(self):
        self.assertEqual(default_role(), 'editor')

    def test_default_role(self):
        self.assertEqual(default_role(), 'member')


class AuthorizationGuardTest(TestCase):
    """Test owner / member / outsider resolution."""

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', username='owner')
        self.member = User.objects.create_user(email='member@example.com', username='member')
        self.outsider = User.objects.create_user(email='outsider@example.com', username='outsider')
        self.team = Team.objects.create(name='Acme', owner=self.owner)
        Membership.objects.create(team=self.team, user=self.member, role='member')

    def test_require_owner_returns_team_for_owner(self):
        self.assertEqual(require_owner(self.owner, self.team.pk), self.team)

    def test_require_owner_forbids_member(self):
        with self.assertRaises(Forbidden):
            require_owner(self.member, self.team.pk)

    def test_require_owner_hides_team_from_outsider(self):
        with self.assertRaises(NotFound):
            require_owner(self.outsider, self.team.pk)

    def test_unknown_and_malformed_ids_are_not_found(self):
        with self.assertRaises(NotFound):
            require_owner(self.owner, uuid.uuid4())
        with self.assertRaises(NotFound):
            require_membership(self.owner, 'not-a-uuid')

    def test_require_membership_accepts_owner_and_member(self):
        self.assertEqual(require_membership(self.owner, self.team.pk), self.team)
        self.assertEqual(require_membership(self.member, str(self.team.pk)), self.team)

    def test_require_membership_rejects_outsider(self):
        with self.assertRaises(NotFound):
            require_membership(self.outsider, self.team.pk)

    def test_require_own_invitation_matches_email_case_insensitively(self):
        invitation = TeamInvitation.objects.create(team=self.team, email='outsider@example.com', invited_by=self.owner)
        self.outsider.email = 'Outsider@Example.com'
        self.assertEqual(require_own_invitation(self.outsider, invitation.pk), invitation)

    def test_require_own_invitation_rejects_other_users(self):
        invitation = TeamInvitation.objects.create(team=self.team, email='outsider@example.com', invited_by=self.owner)
        with self.assertRaises(NotFound):
            require_own_invitation(self.member, invitation.pk)
        with self.assertRaises(NotFound):
            require_own_invitation(self.outsider, uuid.uuid4())

    def test_teams_for_user_lists_owned_and_joined_teams_once(self):
        other = Team.objects.create(name='Beta', owner=self.member)
        self.assertEqual(teams_for_user(self.member), [self.team, other])
        self.assertEqual(teams_for_user(self.owner), [self.team])
        self.assertEqual(teams_for_user(self.outsider), [])

    def test_parse_id(self):
        value = uuid.uuid4()
        self.assertEqual(parse_id(value), value)
        self.assertEqual(parse_id(str(value)), value)
        self.assertIsNone(parse_id('nope'))
        self.assertIsNone(parse_id(None))
