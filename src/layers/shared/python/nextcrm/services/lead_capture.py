"""Capture leads submitted by anonymous visitors on public profiles."""

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from nextcrm.models.lead import CaptureLeadRequest, Lead
from nextcrm.repositories.lead import LeadRepository
from nextcrm.repositories.profile import ProfileRepository
from nextcrm.services.events import PROFILE_SOURCE, publish_event
from nextcrm.utils.exceptions import NotFoundError, ValidationError

logger = structlog.get_logger()

SUCCESS_MESSAGE = "Contact saved successfully!"


def capture_lead(
    data: dict[str, Any],
    visitor_ip: str | None = None,
    user_agent: str | None = None,
    lead_repository: LeadRepository | None = None,
    profile_repository: ProfileRepository | None = None,
) -> dict[str, Any]:
    """Validate and store a lead for a profile.

    Args:
        data: Raw submission (name, phone, interest?, profileId).
        visitor_ip: Submitting visitor's IP.
        user_agent: Submitting visitor's user agent.
        lead_repository: Lead repository override.
        profile_repository: Profile repository override.

    Returns:
        Success acknowledgment with the lead ID.

    Raises:
        ValidationError: Listing every invalid field.
        NotFoundError: If the profile does not exist.
    """
    if not isinstance(data, dict):
        raise ValidationError(errors=[{"field": "", "message": "Submission must be an object", "type": "dict_type"}])

    try:
        request = CaptureLeadRequest.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e

    if request.website:
        # Honeypot filled in: acknowledge without storing
        logger.info("Honeypot triggered on lead capture", profile_id=request.profile_id)
        return {"success": True, "message": SUCCESS_MESSAGE}

    profile_repository = profile_repository or ProfileRepository()
    profile = profile_repository.get_by_id(request.profile_id)
    if profile is None:
        raise NotFoundError("Profile", request.profile_id)

    lead = Lead(
        profile_id=profile.id,
        workspace_id=profile.workspace_id,
        name=request.name,
        phone=request.phone,
        interest=request.interest,
        visitor_ip=visitor_ip,
        user_agent=user_agent,
    )
    lead_repository = lead_repository or LeadRepository()
    lead_repository.create_lead(lead)

    logger.info("Lead captured", lead_id=lead.id, profile_id=lead.profile_id, workspace_id=lead.workspace_id)

    publish_event(
        PROFILE_SOURCE,
        "lead.captured",
        {
            "lead_id": lead.id,
            "profile_id": lead.profile_id,
            "workspace_id": lead.workspace_id,
            "name": lead.name,
            "phone": lead.phone,
            "interest": lead.interest,
            "origin": lead.origin,
            "created_at": lead.created_at.isoformat(),
        },
    )

    return {"success": True, "message": SUCCESS_MESSAGE, "lead_id": lead.id, "profile_id": lead.profile_id}
