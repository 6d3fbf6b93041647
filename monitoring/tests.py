from django.test import TestCase
from unittest.mock import patch
from .metrics import TeamMetrics


class TeamMetricsTest(TestCase):
    """Test suite for TeamMetrics monitoring functionality."""

    @patch('monitoring.metrics.capture_message')
    @patch('monitoring.metrics.set_tag')
    @patch('monitoring.metrics.set_context')
    def test_track_team_event(self, mock_set_context, mock_set_tag, mock_capture):
        """Test tracking a completed team action."""
        TeamMetrics.track_team_event('invitation_sent', 'team-1', 'user-1', email='a@x.com')

        mock_set_tag.assert_called_once_with('team_action', 'invitation_sent')
        mock_set_context.assert_called_once()
        name, context = mock_set_context.call_args[0]
        self.assertEqual(name, 'team_event')
        self.assertEqual(context['team_id'], 'team-1')
        self.assertEqual(context['email'], 'a@x.com')

        # Successful actions are not reported as messages
        mock_capture.assert_not_called()

    @patch('monitoring.metrics.capture_message')
    @patch('monitoring.metrics.set_tag')
    def test_track_denied_forbidden(self, mock_set_tag, mock_capture):
        """Owner-only actions attempted by members are reported."""
        TeamMetrics.track_denied('delete_team', 'team-1', 'user-2', 'forbidden')

        mock_set_tag.assert_any_call('denied_reason', 'forbidden')
        mock_capture.assert_called_once()
        self.assertIn('delete_team', mock_capture.call_args[0][0])

    @patch('monitoring.metrics.capture_message')
    @patch('monitoring.metrics.set_tag')
    def test_track_denied_not_found(self, mock_set_tag, mock_capture):
        """Lookups outside the actor's teams are only tagged."""
        TeamMetrics.track_denied('view_team', 'team-1', 'user-3', 'not_found')

        mock_set_tag.assert_any_call('denied_reason', 'not_found')
        mock_capture.assert_not_called()

    @patch('monitoring.metrics.capture_exception')
    @patch('monitoring.metrics.set_context')
    @patch('monitoring.metrics.set_tag')
    def test_track_cascade_failure(self, mock_set_tag, mock_set_context, mock_capture_exception):
        """Test capture of a rolled-back deletion."""
        error = RuntimeError("constraint failed")

        TeamMetrics.track_cascade_failure(error, 'team-1')

        mock_capture_exception.assert_called_once_with(error)
        mock_set_context.assert_called_once()
        mock_set_tag.assert_any_call('component', 'team_lifecycle')
        mock_set_tag.assert_any_call('team_id', 'team-1')

    @patch('monitoring.metrics.set_tag')
    def test_error_handling_in_tracking(self, mock_set_tag):
        """Tracking failures never propagate to the workflow."""
        mock_set_tag.side_effect = Exception("Sentry unavailable")

        TeamMetrics.track_team_event('team_created', 'team-1', 'user-1')
        TeamMetrics.track_denied('rename_team', 'team-1', 'user-1', 'forbidden')
        TeamMetrics.track_cascade_failure(ValueError("x"), 'team-1')
