"""Tests for Pydantic models."""

import json
from datetime import datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from nextcrm.models.base import generate_ulid
from nextcrm.models.lead import CaptureLeadRequest, Lead
from nextcrm.models.profile import Profile, ProfileOwner, is_valid_slug
from nextcrm.models.template import CreateTemplateRequest, Template, TemplateType
from nextcrm.utils.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError


class TestBaseModel:
    """Tests for BaseModel."""

    def test_generate_ulid(self):
        """Test ULID generation."""
        ulid1 = generate_ulid()
        ulid2 = generate_ulid()

        assert len(ulid1) == 26
        assert ulid1 != ulid2

    def test_model_timestamps(self, sample_template):
        """Test automatic timestamps and version."""
        assert sample_template.created_at is not None
        assert sample_template.updated_at is not None
        assert sample_template.version == 1


class TestTemplate:
    """Tests for Template model."""

    def test_keys(self, sample_template):
        """Test template key patterns."""
        assert sample_template.get_pk() == f"TEMPLATE#{sample_template.id}"
        assert sample_template.get_sk() == f"TEMPLATE#{sample_template.id}"

        gsi = sample_template.get_gsi1_keys()
        assert gsi["GSI1PK"] == "TEMPLATES#test-workspace-456"
        assert gsi["GSI1SK"].endswith(f"#{sample_template.id}")

        reservation = sample_template.get_name_reservation_keys()
        assert reservation == {
            "PK": "TEMPLATE_NAME#test-workspace-456#profile_template",
            "SK": "NAME#Agent Card",
        }

    def test_global_scope(self, sample_template):
        """Test templates without a workspace live in the global scope."""
        sample_template.workspace_id = None

        assert sample_template.is_global
        assert sample_template.get_gsi1_keys()["GSI1PK"] == "TEMPLATES#GLOBAL"

    def test_content_stored_as_json(self, sample_template):
        """Test the content tree is a single JSON string attribute."""
        item = sample_template.to_dynamodb()

        assert isinstance(item["content"], str)
        stored = json.loads(item["content"])
        assert [node["id"] for node in stored["nodes"]] == ["section-1", "heading-1", "text-1", "button-1"]
        assert item["type"] == "profile_template"

    def test_dynamodb_round_trip(self, sample_template, sample_content):
        """Test deserializing a stored item restores the tree."""
        restored = Template.from_dynamodb(sample_template.to_dynamodb())

        assert restored.id == sample_template.id
        assert isinstance(restored.created_at, datetime)
        assert restored.get_content().to_dict() == sample_content.to_dict()

    def test_to_detail(self, sample_template):
        """Test the detail view carries the nested tree."""
        detail = sample_template.to_detail()

        assert detail["name"] == "Agent Card"
        assert detail["type"] == "profile_template"
        assert detail["content"]["metadata"]["name"] == "Agent Card"
        assert detail["content"]["elements"][0]["children"][0]["id"] == "heading-1"

    def test_name_length(self):
        """Test template names are 3-255 characters."""
        with pytest.raises(PydanticValidationError):
            CreateTemplateRequest(name=" ab ", type=TemplateType.CONTENT_BLOCK)

        request = CreateTemplateRequest(name="  Hero block  ", type="content_block")
        assert request.name == "Hero block"


class TestProfile:
    """Tests for Profile model."""

    def test_keys(self):
        """Test profile key patterns."""
        profile = Profile(workspace_id="ws-1", slug="jane-doe", owner=ProfileOwner(name="Jane"))

        assert profile.get_pk() == f"PROFILE#{profile.id}"
        assert profile.get_gsi1_keys()["GSI1PK"] == "PROFILE_SLUG#jane-doe"
        assert profile.get_slug_reservation_keys() == {"PK": "SLUG#jane-doe", "SK": "PROFILE_SLUG"}

    def test_content_optional(self):
        """Test a profile may defer to its template's content."""
        profile = Profile(workspace_id="ws-1", slug="jane", owner=ProfileOwner(name="Jane"), template_id="t-1")

        assert profile.get_content() is None
        assert "content" not in profile.to_dynamodb()

    @pytest.mark.parametrize("slug", ["jane-doe", "Jane_Doe", "j", "a1"])
    def test_valid_slugs(self, slug):
        assert is_valid_slug(slug)

    @pytest.mark.parametrize("slug", ["", None, "-jane", "jane doe", "jane/doe", "x" * 101])
    def test_invalid_slugs(self, slug):
        assert not is_valid_slug(slug)


class TestLead:
    """Tests for Lead model."""

    def test_keys(self):
        """Test leads sort under their profile by time."""
        lead = Lead(profile_id="p-1", workspace_id="ws-1", name="Jane Doe", phone="5511999999999")

        assert lead.get_pk() == "PROFILE#p-1"
        assert lead.get_sk().startswith("LEAD#")
        assert lead.get_gsi1_keys()["GSI1PK"] == "WS#ws-1#LEADS"
        assert lead.origin == "digital_profile"

    def test_capture_request_strips_whitespace(self):
        """Test submitted values are trimmed before validation."""
        request = CaptureLeadRequest.model_validate(
            {"name": "  Jane  ", "phone": " 5511999999999 ", "interest": "   ", "profileId": generate_ulid()}
        )

        assert request.name == "Jane"
        assert request.phone == "5511999999999"
        assert request.interest is None


class TestExceptions:
    """Tests for error result shapes."""

    def test_not_found(self):
        error = NotFoundError("Template", "t-1")

        assert error.status_code == 404
        assert error.to_dict() == {
            "success": False,
            "error": "Template with ID 't-1' not found",
            "error_code": "NOT_FOUND",
            "details": {"resource_type": "Template", "resource_id": "t-1"},
        }

    def test_validation_lists_all_errors(self):
        """Test every pydantic error is kept with its field."""
        with pytest.raises(PydanticValidationError) as exc_info:
            CaptureLeadRequest.model_validate({"name": "J", "phone": "1", "profileId": "x"})

        error = ValidationError.from_pydantic(exc_info.value)

        assert sorted(e["field"] for e in error.errors) == ["name", "phone", "profileId"]

    def test_conflict_details(self):
        error = ConflictError("Taken", conflict_type="template_name", details={"name": "X"})

        assert error.status_code == 409
        assert error.details == {"name": "X", "conflict_type": "template_name"}

    def test_persistence_error_is_opaque(self):
        error = PersistenceError("put_item")

        assert error.status_code == 503
        assert error.to_dict()["error"] == "Storage is temporarily unavailable"
        assert "put_item" not in json.dumps(error.to_dict())
