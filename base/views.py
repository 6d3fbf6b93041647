from collections.abc import Mapping

from drf_yasg import openapi
from drf_yasg.utils import no_body, swagger_auto_schema
from rest_framework import status, permissions
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from base import invitations, memberships
from base.guards import teams_for_user
from base.lifecycle import TeamLifecycle
from base.roles import assignable_roles
from base.serializers import (
    CurrentUserSerializer, InvitationEmailSerializer, MemberRoleSerializer, PendingInvitationSerializer,
    TeamNameSerializer, TeamSerializer,
)

TEAM_LIST = TeamSerializer(many=True)
NOT_FOUND = openapi.Response("Team not found or not yours")
FORBIDDEN = openapi.Response("Only the team owner can do this")
INVALID = openapi.Response("Invalid input")


def request_fields(request):
    """The request body as a mapping; any other JSON value carries no fields."""
    return request.data if isinstance(request.data, Mapping) else {}


class CurrentUserView(GenericAPIView):
    """The authenticated user, including the current team."""
    serializer_class = CurrentUserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(self.get_serializer(request.user).data)


# ============= Team Management Views =============

class TeamListCreateView(GenericAPIView):
    """List the teams the current user owns or belongs to, or create one."""
    serializer_class = TeamSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        teams = teams_for_user(request.user)
        return Response(self.get_serializer(teams, many=True).data)

    @swagger_auto_schema(
        operation_description="Create a team owned by the current user",
        request_body=TeamNameSerializer,
        responses={201: TEAM_LIST, 422: INVALID},
    )
    def post(self, request):
        teams = TeamLifecycle().create_team(request.user, request_fields(request).get('name'))
        return Response(self.get_serializer(teams, many=True).data, status=status.HTTP_201_CREATED)


class TeamDetailView(GenericAPIView):
    """Show (members), rename or delete (owner) a team."""
    serializer_class = TeamSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        team = TeamLifecycle().get_team(request.user, pk)
        return Response(self.get_serializer(team).data)

    @swagger_auto_schema(
        operation_description="Rename a team (owner only)",
        request_body=TeamNameSerializer,
        responses={200: TeamSerializer, 403: FORBIDDEN, 404: NOT_FOUND, 422: INVALID},
    )
    def put(self, request, pk):
        data = request_fields(request)
        extra = {key: value for key, value in data.items() if key != 'name'}
        team = TeamLifecycle().rename_team(request.user, pk, data.get('name'), extra)
        return Response(self.get_serializer(team).data)

    @swagger_auto_schema(
        operation_description="Delete a team with its memberships and invitations (owner only)",
        responses={200: TEAM_LIST, 403: FORBIDDEN, 404: NOT_FOUND},
    )
    def delete(self, request, pk):
        teams = TeamLifecycle().delete_team(request.user, pk)
        return Response(self.get_serializer(teams, many=True).data)


class TeamSwitchView(GenericAPIView):
    """Make a team the current user's active context."""
    serializer_class = CurrentUserSerializer
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(request_body=no_body, responses={200: CurrentUserSerializer, 404: NOT_FOUND})
    def post(self, request, pk):
        memberships.switch_current_team(request.user, pk)
        return Response(self.get_serializer(request.user).data)


class TeamLeaveView(GenericAPIView):
    """Leave a team (member only; owner cannot leave)."""
    serializer_class = TeamSerializer
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(request_body=no_body, responses={200: TEAM_LIST, 403: FORBIDDEN, 404: NOT_FOUND})
    def post(self, request, pk):
        teams = memberships.leave_team(request.user, pk)
        return Response(self.get_serializer(teams, many=True).data)


class TeamRolesView(APIView):
    """Roles the owner can give to members."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response([{'id': key, 'name': label} for key, label in assignable_roles().items()])


# ---------- Team invitations (owner invites by email; invitee accepts/declines) ----------

class TeamInvitationCreateView(GenericAPIView):
    """Invite a user to the team by email (owner only)."""
    serializer_class = TeamSerializer
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(
        request_body=InvitationEmailSerializer,
        responses={
            201: TeamSerializer,
            403: FORBIDDEN,
            404: NOT_FOUND,
            409: openapi.Response("That user is already invited to the team"),
            422: INVALID,
        },
    )
    def post(self, request, pk):
        team = invitations.send_invitation(request.user, pk, request_fields(request).get('email'))
        return Response(self.get_serializer(team).data, status=status.HTTP_201_CREATED)


class TeamInvitationRevokeView(GenericAPIView):
    """Cancel a pending invitation (owner only)."""
    serializer_class = TeamSerializer
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(responses={200: TeamSerializer, 403: FORBIDDEN, 404: NOT_FOUND})
    def delete(self, request, pk, invitation_id):
        team = invitations.revoke_invitation(request.user, pk, invitation_id)
        return Response(self.get_serializer(team).data)


class TeamInvitationListView(GenericAPIView):
    """List pending invitations for the current user (where invitee email matches)."""
    serializer_class = PendingInvitationSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        pending = invitations.pending_invitations_for(request.user)
        return Response(self.get_serializer(pending, many=True).data)


class TeamInvitationAcceptView(GenericAPIView):
    """Accept an invitation (invitee only)."""
    serializer_class = TeamSerializer
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(request_body=no_body, responses={200: TEAM_LIST, 404: openapi.Response("Invitation not found")})
    def post(self, request, invitation_id):
        teams = invitations.accept_invitation(request.user, invitation_id)
        return Response(self.get_serializer(teams, many=True).data)


class TeamInvitationDeclineView(APIView):
    """Decline an invitation (invitee only)."""
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(responses={204: openapi.Response("Invitation declined"), 404: openapi.Response("Invitation not found")})
    def delete(self, request, invitation_id):
        invitations.revoke_own_invitation(request.user, invitation_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ---------- Team members (owner only) ----------

class TeamMemberView(GenericAPIView):
    """Change a member's role or remove the member (owner only)."""
    serializer_class = TeamSerializer
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(
        request_body=MemberRoleSerializer,
        responses={200: TeamSerializer, 403: FORBIDDEN, 404: NOT_FOUND, 422: INVALID},
    )
    def put(self, request, pk, user_id):
        team = memberships.update_member_role(request.user, pk, user_id, request_fields(request).get('role'))
        return Response(self.get_serializer(team).data)

    @swagger_auto_schema(responses={200: TeamSerializer, 403: FORBIDDEN, 404: NOT_FOUND})
    def delete(self, request, pk, user_id):
        team = memberships.remove_member(request.user, pk, user_id)
        return Response(self.get_serializer(team).data)
