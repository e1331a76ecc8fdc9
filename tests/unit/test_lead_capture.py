"""Tests for public lead capture."""

from unittest.mock import patch

import pytest

from nextcrm.models.base import generate_ulid
from nextcrm.models.profile import Profile
from nextcrm.repositories.lead import LeadRepository
from nextcrm.repositories.profile import ProfileRepository
from nextcrm.services.lead_capture import capture_lead
from nextcrm.utils.exceptions import NotFoundError, ValidationError

WORKSPACE_ID = "test-workspace-456"


@pytest.fixture
def profile(dynamodb_table, sample_owner):
    return ProfileRepository().create_profile(
        Profile(workspace_id=WORKSPACE_ID, slug="jane-doe", owner=sample_owner, template_id="t-1")
    )


class TestCaptureLead:
    """Tests for capture_lead."""

    def test_reports_every_invalid_field(self):
        """Test all invalid fields are reported together."""
        with pytest.raises(ValidationError) as exc_info:
            capture_lead({"name": "J", "phone": "123", "profileId": "not-a-cuid"})

        errors = exc_info.value.errors
        assert len(errors) == 3
        assert sorted(e["field"] for e in errors) == ["name", "phone", "profileId"]
        profile_error = next(e for e in errors if e["field"] == "profileId")
        assert "Invalid profile ID" in profile_error["message"]

    def test_missing_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            capture_lead({})

        assert sorted(e["field"] for e in exc_info.value.errors) == ["name", "phone", "profileId"]

    def test_non_object_submission(self):
        with pytest.raises(ValidationError):
            capture_lead(["Jane"])

    def test_success(self, profile):
        """Test a valid submission is stored under the profile and its workspace."""
        with patch("nextcrm.services.lead_capture.publish_event") as mock_publish:
            result = capture_lead(
                {"name": "Jane Doe", "phone": "5511999999999", "interest": "3-bedroom house", "profileId": profile.id},
                visitor_ip="1.2.3.4",
                user_agent="pytest",
            )

        assert result["success"] is True
        assert result["message"] == "Contact saved successfully!"
        assert result["profile_id"] == profile.id

        leads = LeadRepository().list_by_profile(profile.id)
        assert [lead.id for lead in leads] == [result["lead_id"]]
        assert leads[0].interest == "3-bedroom house"
        assert leads[0].origin == "digital_profile"
        assert leads[0].visitor_ip == "1.2.3.4"

        source, detail_type, detail = mock_publish.call_args.args
        assert detail_type == "lead.captured"
        assert detail["workspace_id"] == WORKSPACE_ID
        assert detail["lead_id"] == result["lead_id"]

    def test_unknown_profile(self, dynamodb_table):
        """Test leads for a profile that does not exist are refused."""
        with pytest.raises(NotFoundError):
            capture_lead({"name": "Jane Doe", "phone": "5511999999999", "profileId": generate_ulid()})

    def test_honeypot(self, profile):
        """Test bot submissions are acknowledged but not stored."""
        result = capture_lead(
            {"name": "Bot", "phone": "5511999999999", "profileId": profile.id, "website": "http://spam.example"}
        )

        assert result["success"] is True
        assert "lead_id" not in result
        assert LeadRepository().list_by_profile(profile.id) == []

    def test_event_failure_does_not_fail_capture(self, profile):
        """Test publishing problems never lose the lead."""
        with patch("nextcrm.services.events.get_events_client", side_effect=RuntimeError("no events")):
            result = capture_lead({"name": "Jane Doe", "phone": "5511999999999", "profileId": profile.id})

        assert result["success"] is True
        assert len(LeadRepository().list_by_profile(profile.id)) == 1

    def test_slow_bus_is_not_retried(self, dynamodb_table, monkeypatch):
        """Test the events client fails fast instead of holding the request."""
        from nextcrm.services import events

        monkeypatch.setattr(events, "_events_client", None)
        client = events.get_events_client()

        assert client.meta.config.retries["total_max_attempts"] == 1
        assert client.meta.config.read_timeout <= 2
        assert client.meta.config.connect_timeout <= 1
        assert events.get_events_client() is client
