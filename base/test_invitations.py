"""
Tests for the invitation workflow:
- sending, with duplicate and race protection
- accepting, including repeated delivery
- revoking by the owner and declining by the invitee
"""
import uuid
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core import mail
from django.db.models import QuerySet
from django.test import TestCase

from base.exceptions import Conflict, Forbidden, NotFound, ValidationError
from base.invitations import (
    accept_invitation, pending_invitations_for, revoke_invitation, revoke_own_invitation, send_invitation,
)
from base.models import Membership, Team, TeamInvitation
from base.tasks import send_team_invitation_email

User = get_user_model()


class InvitationTestCase(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(email='owner@example.com', username='owner', first_name='Olga')
        self.member = User.objects.create_user(email='member@example.com', username='member')
        self.invitee = User.objects.create_user(email='a@x.com', username='invitee')
        self.team = Team.objects.create(name='Acme', owner=self.owner)
        Membership.objects.create(team=self.team, user=self.member, role='member')


class SendInvitationTest(InvitationTestCase):

    def test_owner_sends_invitation(self):
        team = send_invitation(self.owner, self.team.pk, 'a@x.com')
        self.assertEqual([inv.email for inv in team.invitations.all()], ['a@x.com'])
        invitation = TeamInvitation.objects.get(team=self.team)
        self.assertEqual(invitation.invited_by, self.owner)

    def test_email_is_trimmed_and_lowercased(self):
        send_invitation(self.owner, self.team.pk, '  A@X.com ')
        self.assertTrue(TeamInvitation.objects.filter(team=self.team, email='a@x.com').exists())

    def test_duplicate_invitation_conflicts(self):
        send_invitation(self.owner, self.team.pk, 'a@x.com')
        with self.assertRaises(Conflict):
            send_invitation(self.owner, self.team.pk, 'A@x.com')
        self.assertEqual(TeamInvitation.objects.filter(team=self.team).count(), 1)

    def test_constraint_rejects_insert_that_passed_the_check(self):
        """A concurrent send that slipped past the exists() check still conflicts."""
        send_invitation(self.owner, self.team.pk, 'a@x.com')
        with patch.object(QuerySet, 'exists', return_value=False):
            with self.assertRaises(Conflict):
                send_invitation(self.owner, self.team.pk, 'a@x.com')
        self.assertEqual(TeamInvitation.objects.filter(team=self.team, email='a@x.com').count(), 1)

    def test_invalid_email_is_rejected(self):
        for email in ['', None, 'not-an-email', 'a' * 250 + '@x.com']:
            with self.subTest(email=email):
                with self.assertRaises(ValidationError):
                    send_invitation(self.owner, self.team.pk, email)
        self.assertFalse(TeamInvitation.objects.exists())

    def test_existing_member_or_owner_cannot_be_invited(self):
        with self.assertRaises(ValidationError):
            send_invitation(self.owner, self.team.pk, 'member@example.com')
        with self.assertRaises(ValidationError):
            send_invitation(self.owner, self.team.pk, 'owner@example.com')

    def test_member_cannot_invite(self):
        with self.assertRaises(Forbidden):
            send_invitation(self.member, self.team.pk, 'a@x.com')
        self.assertFalse(TeamInvitation.objects.exists())

    def test_outsider_gets_not_found(self):
        with self.assertRaises(NotFound):
            send_invitation(self.invitee, self.team.pk, 'someone@x.com')

    def test_authorization_is_checked_before_email_validation(self):
        with self.assertRaises(Forbidden):
            send_invitation(self.member, self.team.pk, 'not-an-email')
        with self.assertRaises(NotFound):
            send_invitation(self.invitee, self.team.pk, 'not-an-email')

    @patch('base.invitations.send_team_invitation_email')
    def test_email_is_queued_after_commit(self, mock_task):
        with self.captureOnCommitCallbacks(execute=True):
            send_invitation(self.owner, self.team.pk, 'a@x.com')
        invitation = TeamInvitation.objects.get(team=self.team)
        mock_task.delay.assert_called_once_with(str(invitation.id))


class AcceptInvitationTest(InvitationTestCase):

    def setUp(self):
        super().setUp()
        self.invitation = TeamInvitation.objects.create(team=self.team, email='a@x.com', invited_by=self.owner)

    def test_accept_creates_membership_and_deletes_invitation(self):
        teams = accept_invitation(self.invitee, self.invitation.pk)
        self.assertEqual(teams, [self.team])
        membership = Membership.objects.get(team=self.team, user=self.invitee)
        self.assertEqual(membership.role, 'member')
        self.assertEqual(membership.invitation_id, self.invitation.pk)
        self.assertFalse(TeamInvitation.objects.filter(pk=self.invitation.pk).exists())

    def test_accepting_twice_is_a_no_op(self):
        accept_invitation(self.invitee, self.invitation.pk)
        teams = accept_invitation(self.invitee, self.invitation.pk)
        self.assertEqual(teams, [self.team])
        self.assertEqual(Membership.objects.filter(team=self.team, user=self.invitee).count(), 1)

    def test_accept_when_already_member_still_deletes_invitation(self):
        Membership.objects.create(team=self.team, user=self.invitee, role='member')
        teams = accept_invitation(self.invitee, self.invitation.pk)
        self.assertEqual(teams, [self.team])
        self.assertEqual(Membership.objects.filter(team=self.team, user=self.invitee).count(), 1)
        self.assertFalse(TeamInvitation.objects.exists())

    def test_invitation_for_someone_else_is_not_found(self):
        with self.assertRaises(NotFound):
            accept_invitation(self.member, self.invitation.pk)
        self.assertTrue(TeamInvitation.objects.filter(pk=self.invitation.pk).exists())

    def test_unknown_invitation_is_not_found(self):
        with self.assertRaises(NotFound):
            accept_invitation(self.invitee, uuid.uuid4())
        with self.assertRaises(NotFound):
            accept_invitation(self.invitee, 'garbage')

    def test_owner_accepting_gets_no_membership_row(self):
        invitation = TeamInvitation.objects.create(team=self.team, email='owner@example.com', invited_by=self.owner)
        accept_invitation(self.owner, invitation.pk)
        self.assertFalse(Membership.objects.filter(team=self.team, user=self.owner).exists())
        self.assertFalse(TeamInvitation.objects.filter(pk=invitation.pk).exists())


class RevokeInvitationTest(InvitationTestCase):

    def setUp(self):
        super().setUp()
        self.invitation = TeamInvitation.objects.create(team=self.team, email='a@x.com', invited_by=self.owner)

    def test_owner_revokes_invitation(self):
        team = revoke_invitation(self.owner, self.team.pk, self.invitation.pk)
        self.assertEqual(list(team.invitations.all()), [])

    def test_unknown_or_cross_team_invitation_is_a_no_op(self):
        other_team = Team.objects.create(name='Other', owner=self.member)
        foreign = TeamInvitation.objects.create(team=other_team, email='z@x.com', invited_by=self.member)
        revoke_invitation(self.owner, self.team.pk, uuid.uuid4())
        revoke_invitation(self.owner, self.team.pk, foreign.pk)
        revoke_invitation(self.owner, self.team.pk, 'garbage')
        self.assertTrue(TeamInvitation.objects.filter(pk=foreign.pk).exists())
        self.assertTrue(TeamInvitation.objects.filter(pk=self.invitation.pk).exists())

    def test_member_cannot_revoke(self):
        with self.assertRaises(Forbidden):
            revoke_invitation(self.member, self.team.pk, self.invitation.pk)
        self.assertTrue(TeamInvitation.objects.filter(pk=self.invitation.pk).exists())

    def test_invitee_declines(self):
        revoke_own_invitation(self.invitee, self.invitation.pk)
        self.assertFalse(TeamInvitation.objects.exists())
        self.assertFalse(Membership.objects.filter(user=self.invitee).exists())

    def test_decline_of_someone_elses_invitation_is_not_found(self):
        with self.assertRaises(NotFound):
            revoke_own_invitation(self.member, self.invitation.pk)
        with self.assertRaises(NotFound):
            revoke_own_invitation(self.invitee, uuid.uuid4())

    def test_pending_invitations_for_user(self):
        other_team = Team.objects.create(name='Other', owner=self.member)
        TeamInvitation.objects.create(team=other_team, email='a@x.com', invited_by=self.member)
        self.assertEqual(pending_invitations_for(self.invitee).count(), 2)
        self.assertEqual(pending_invitations_for(self.member).count(), 0)


class InvitationEmailTaskTest(InvitationTestCase):

    def test_sends_email_to_invitee(self):
        invitation = TeamInvitation.objects.create(team=self.team, email='a@x.com', invited_by=self.owner)
        self.assertTrue(send_team_invitation_email(str(invitation.id)))
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['a@x.com'])
        self.assertIn('Acme', mail.outbox[0].subject)
        self.assertIn('Olga', mail.outbox[0].body)

    def test_skips_missing_invitation(self):
        self.assertFalse(send_team_invitation_email(str(uuid.uuid4())))
        self.assertEqual(len(mail.outbox), 0)
