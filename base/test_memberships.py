import uuid
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings

from base.exceptions import Forbidden, NotFound, ValidationError
from base.guards import require_membership
from base.memberships import leave_team, remove_member, switch_current_team, update_member_role
from base.models import Membership, Team

User = get_user_model()


class MembershipTestCase(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', username='owner')
        self.member = User.objects.create_user(email='member@example.com', username='member')
        self.outsider = User.objects.create_user(email='outsider@example.com', username='outsider')
        self.team = Team.objects.create(name='Acme', owner=self.owner)
        self.membership = Membership.objects.create(team=self.team, user=self.member, role='member')


@override_settings(TEAM_ROLES={'admin': 'Admin', 'member': 'Member'})
class UpdateMemberRoleTest(MembershipTestCase):

    def test_owner_changes_role(self):
        team = update_member_role(self.owner, self.team.pk, self.member.pk, 'admin')
        self.membership.refresh_from_db()
        self.assertEqual(self.membership.role, 'admin')
        self.assertEqual([m.role for m in team.memberships.all()], ['admin'])

    def test_same_role_is_a_no_op(self):
        before = self.membership.updated_at
        update_member_role(self.owner, self.team.pk, self.member.pk, 'member')
        self.membership.refresh_from_db()
        self.assertEqual(self.membership.role, 'member')
        self.assertEqual(self.membership.updated_at, before)

    def test_owner_role_cannot_be_assigned(self):
        with self.assertRaises(ValidationError):
            update_member_role(self.owner, self.team.pk, self.member.pk, 'owner')
        self.membership.refresh_from_db()
        self.assertEqual(self.membership.role, 'member')

    def test_unknown_role_is_rejected(self):
        with self.assertRaises(ValidationError):
            update_member_role(self.owner, self.team.pk, self.member.pk, 'superhero')

    def test_non_member_target_is_not_found(self):
        with self.assertRaises(NotFound):
            update_member_role(self.owner, self.team.pk, self.outsider.pk, 'admin')
        with self.assertRaises(NotFound):
            update_member_role(self.owner, self.team.pk, self.owner.pk, 'admin')
        with self.assertRaises(NotFound):
            update_member_role(self.owner, self.team.pk, 'garbage', 'admin')

    def test_member_cannot_change_roles(self):
        with self.assertRaises(Forbidden):
            update_member_role(self.member, self.team.pk, self.member.pk, 'admin')


class RemoveMemberTest(MembershipTestCase):

    def test_owner_removes_member(self):
        team = remove_member(self.owner, self.team.pk, self.member.pk)
        self.assertEqual(list(team.memberships.all()), [])
        self.assertFalse(self.member.on_team(self.team))

    def test_removal_clears_matching_current_team(self):
        self.member.switch_to_team(self.team)
        remove_member(self.owner, self.team.pk, self.member.pk)
        self.member.refresh_from_db()
        self.assertIsNone(self.member.current_team)

    def test_removal_keeps_other_current_team(self):
        other = Team.objects.create(name='Beta', owner=self.member)
        self.member.switch_to_team(other)
        remove_member(self.owner, self.team.pk, self.member.pk)
        self.member.refresh_from_db()
        self.assertEqual(self.member.current_team, other)

    def test_removing_twice_is_not_found(self):
        remove_member(self.owner, self.team.pk, self.member.pk)
        with self.assertRaises(NotFound):
            remove_member(self.owner, self.team.pk, self.member.pk)

    def test_owner_cannot_be_removed(self):
        with self.assertRaises(NotFound):
            remove_member(self.owner, self.team.pk, self.owner.pk)

    def test_member_cannot_remove_others(self):
        other = User.objects.create_user(email='other@example.com', username='other')
        Membership.objects.create(team=self.team, user=other, role='member')
        with self.assertRaises(Forbidden):
            remove_member(self.member, self.team.pk, other.pk)
        self.assertTrue(other.on_team(self.team))

    def test_outsider_gets_not_found(self):
        with self.assertRaises(NotFound):
            remove_member(self.outsider, self.team.pk, self.member.pk)


class LeaveTeamTest(MembershipTestCase):

    def test_member_leaves(self):
        self.member.switch_to_team(self.team)
        teams = leave_team(self.member, self.team.pk)
        self.assertEqual(teams, [])
        self.assertIsNone(self.member.current_team)
        self.member.refresh_from_db()
        self.assertIsNone(self.member.current_team)
        self.assertFalse(Membership.objects.filter(team=self.team, user=self.member).exists())

    def test_leaving_returns_remaining_teams(self):
        other = Team.objects.create(name='Beta', owner=self.member)
        self.assertEqual(leave_team(self.member, self.team.pk), [other])

    def test_leaving_keeps_other_current_team(self):
        other = Team.objects.create(name='Beta', owner=self.member)
        self.member.switch_to_team(other)
        leave_team(self.member, self.team.pk)
        self.assertEqual(self.member.current_team, other)
        self.member.refresh_from_db()
        self.assertEqual(self.member.current_team, other)

    def test_owner_cannot_leave(self):
        with self.assertRaises(Forbidden):
            leave_team(self.owner, self.team.pk)
        self.assertTrue(Team.objects.filter(pk=self.team.pk).exists())

    def test_outsider_gets_not_found(self):
        with self.assertRaises(NotFound):
            leave_team(self.outsider, self.team.pk)


class SwitchCurrentTeamTest(MembershipTestCase):

    def test_member_switches(self):
        team = switch_current_team(self.member, self.team.pk)
        self.assertEqual(team, self.team)
        self.member.refresh_from_db()
        self.assertEqual(self.member.current_team, self.team)

    def test_owner_switches(self):
        switch_current_team(self.owner, str(self.team.pk))
        self.owner.refresh_from_db()
        self.assertEqual(self.owner.current_team_id, self.team.pk)

    def test_switching_twice_is_idempotent(self):
        switch_current_team(self.member, self.team.pk)
        switch_current_team(self.member, self.team.pk)
        self.member.refresh_from_db()
        self.assertEqual(self.member.current_team, self.team)

    def test_switch_locks_the_team_row(self):
        with patch('base.memberships.require_membership', wraps=require_membership) as mock_guard:
            switch_current_team(self.member, self.team.pk)
        mock_guard.assert_called_once_with(self.member, self.team.pk, action='switch_team', for_update=True)

    def test_removed_member_cannot_switch(self):
        remove_member(self.owner, self.team.pk, self.member.pk)
        with self.assertRaises(NotFound):
            switch_current_team(self.member, self.team.pk)
        self.member.refresh_from_db()
        self.assertIsNone(self.member.current_team)

    def test_outsider_cannot_switch(self):
        with self.assertRaises(NotFound):
            switch_current_team(self.outsider, self.team.pk)
        with self.assertRaises(NotFound):
            switch_current_team(self.member, uuid.uuid4())
        self.outsider.refresh_from_db()
        self.assertIsNone(self.outsider.current_team)
