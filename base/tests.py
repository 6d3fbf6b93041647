from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from base.models import Membership, Team, TeamInvitation

User = get_user_model()


class TeamApiTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(
            username="owner",
            email="owner@example.com",
            first_name="Olga",
            last_name="Owner"
        )
        self.member = User.objects.create_user(username="member", email="member@example.com")
        self.invitee = User.objects.create_user(username="invitee", email="a@x.com")
        self.client.force_authenticate(user=self.owner)

    def as_user(self, user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client


class TeamWorkflowApiTest(TeamApiTestCase):
    """The full create / invite / accept / delete flow over HTTP."""

    def test_acme_scenario(self):
        response = self.client.post(reverse('team-list'), {'name': 'Acme'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data), 1)
        team_id = response.data[0]['id']
        self.assertEqual(response.data[0]['role'], 'owner')
        self.assertTrue(response.data[0]['is_owner'])
        self.assertEqual(response.data[0]['members'], [])

        response = self.client.post(reverse('team-invite', args=[team_id]), {'email': 'a@x.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual([inv['email'] for inv in response.data['invitations']], ['a@x.com'])

        invitee_client = self.as_user(self.invitee)
        response = invitee_client.get(reverse('team-invitations-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['team_name'], 'Acme')
        self.assertEqual(response.data[0]['invited_by_name'], 'Olga Owner')
        invitation_id = response.data[0]['id']

        response = invitee_client.post(reverse('team-invitation-accept', args=[invitation_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([team['name'] for team in response.data], ['Acme'])
        self.assertEqual(response.data[0]['role'], 'member')
        self.assertEqual(response.data[0]['invitations'], [])

        response = self.client.get(reverse('team-detail', args=[team_id]))
        self.assertEqual([m['email'] for m in response.data['members']], ['a@x.com'])
        self.assertEqual(response.data['member_count'], 1)
        self.assertEqual(response.data['invitations'], [])

        response = self.client.delete(reverse('team-detail', args=[team_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])
        self.assertFalse(Team.objects.exists())
        self.assertFalse(Membership.objects.exists())
        self.assertFalse(TeamInvitation.objects.exists())

    def test_requires_authentication(self):
        response = APIClient().get(reverse('team-list'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class TeamApiErrorTest(TeamApiTestCase):

    def setUp(self):
        super().setUp()
        self.team = Team.objects.create(name='Acme', owner=self.owner)
        Membership.objects.create(team=self.team, user=self.member, role='member')

    def test_invalid_name_is_422(self):
        response = self.client.post(reverse('team-list'), {'name': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('name', response.data)

    def test_non_object_body_is_422(self):
        body = ['Acme']
        response = self.client.post(reverse('team-list'), body, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        response = self.client.put(reverse('team-detail', args=[self.team.pk]), body, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        response = self.client.post(reverse('team-invite', args=[self.team.pk]), body, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        url = reverse('team-member', args=[self.team.pk, self.member.pk])
        response = self.client.put(url, body, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.team.refresh_from_db()
        self.assertEqual(self.team.name, 'Acme')

    def test_member_gets_403_on_owner_actions(self):
        client = self.as_user(self.member)
        response = client.put(reverse('team-detail', args=[self.team.pk]), {'name': 'Mine'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = client.delete(reverse('team-detail', args=[self.team.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_outsider_gets_404(self):
        client = self.as_user(self.invitee)
        response = client.get(reverse('team-detail', args=[self.team.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = client.post(reverse('team-invite', args=[self.team.pk]), {'email': 'z@x.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_duplicate_invitation_is_409(self):
        url = reverse('team-invite', args=[self.team.pk])
        self.client.post(url, {'email': 'a@x.com'}, format='json')
        response = self.client.post(url, {'email': 'A@X.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_member_view_hides_invitations(self):
        TeamInvitation.objects.create(team=self.team, email='a@x.com', invited_by=self.owner)
        response = self.as_user(self.member).get(reverse('team-detail', args=[self.team.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['invitations'], [])
        self.assertEqual(response.data['role'], 'member')
        self.assertFalse(response.data['is_owner'])


class TeamMembersApiTest(TeamApiTestCase):

    def setUp(self):
        super().setUp()
        self.team = Team.objects.create(name='Acme', owner=self.owner)
        Membership.objects.create(team=self.team, user=self.member, role='member')

    def test_owner_cannot_be_given_owner_role(self):
        url = reverse('team-member', args=[self.team.pk, self.member.pk])
        response = self.client.put(url, {'role': 'owner'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_remove_member(self):
        url = reverse('team-member', args=[self.team.pk, self.member.pk])
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['members'], [])
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_member_leaves(self):
        client = self.as_user(self.member)
        response = client.post(reverse('team-leave', args=[self.team.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_owner_cannot_leave(self):
        response = self.client.post(reverse('team-leave', args=[self.team.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_switch_updates_current_user(self):
        client = self.as_user(self.member)
        response = client.post(reverse('team-switch', args=[self.team.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['current_team'], self.team.pk)
        self.assertEqual(response.data['current_team_name'], 'Acme')

        response = client.get(reverse('current-user'))
        self.assertEqual(response.data['current_team_name'], 'Acme')

    def test_decline_invitation(self):
        invitation = TeamInvitation.objects.create(team=self.team, email='a@x.com', invited_by=self.owner)
        client = self.as_user(self.invitee)
        response = client.delete(reverse('team-invitation-decline', args=[invitation.pk]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = client.delete(reverse('team-invitation-decline', args=[invitation.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_owner_revokes_invitation(self):
        invitation = TeamInvitation.objects.create(team=self.team, email='a@x.com', invited_by=self.owner)
        response = self.client.delete(reverse('team-invitation-revoke', args=[self.team.pk, invitation.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['invitations'], [])

    def test_roles_endpoint_lists_assignable_roles(self):
        response = self.client.get(reverse('team-roles'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [{'id': 'member', 'name': 'Member'}])


class AuthApiTest(TestCase):

    def test_token_login_and_current_user(self):
        User.objects.create_user(username="jwt", email="jwt@example.com", password="s3cret-pass")
        client = APIClient()
        response = client.post(
            reverse('token_obtain_pair'),
            {'email': 'jwt@example.com', 'password': 's3cret-pass'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        response = client.get(reverse('current-user'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'jwt@example.com')
        self.assertIsNone(response.data['current_team'])


class AdminSmokeTest(TestCase):

    def test_team_changelist_renders(self):
        admin = User.objects.create_superuser(email='admin@example.com', username='admin', password='pw')
        Team.objects.create(name='Acme', owner=admin)
        self.client.force_login(admin)
        response = self.client.get(reverse('admin:base_team_changelist'))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Acme')
