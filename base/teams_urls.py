from django.urls import path
from .views import (
    TeamListCreateView,
    TeamDetailView,
    TeamSwitchView,
    TeamLeaveView,
    TeamRolesView,
    TeamInvitationCreateView,
    TeamInvitationRevokeView,
    TeamInvitationListView,
    TeamInvitationAcceptView,
    TeamInvitationDeclineView,
    TeamMemberView,
)

urlpatterns = [
    path('', TeamListCreateView.as_view(), name='team-list'),
    path('roles/', TeamRolesView.as_view(), name='team-roles'),
    path('invitations/', TeamInvitationListView.as_view(), name='team-invitations-list'),
    path('invitations/<uuid:invitation_id>/', TeamInvitationDeclineView.as_view(), name='team-invitation-decline'),
    path('invitations/<uuid:invitation_id>/accept/', TeamInvitationAcceptView.as_view(), name='team-invitation-accept'),
    path('<uuid:pk>/', TeamDetailView.as_view(), name='team-detail'),
    path('<uuid:pk>/switch/', TeamSwitchView.as_view(), name='team-switch'),
    path('<uuid:pk>/leave/', TeamLeaveView.as_view(), name='team-leave'),
    path('<uuid:pk>/invitations/', TeamInvitationCreateView.as_view(), name='team-invite'),
    path('<uuid:pk>/invitations/<uuid:invitation_id>/', TeamInvitationRevokeView.as_view(), name='team-invitation-revoke'),
    path('<uuid:pk>/members/<uuid:user_id>/', TeamMemberView.as_view(), name='team-member'),
]
