"""Profile repository for DynamoDB operations."""

import structlog

from nextcrm.models.profile import Profile
from nextcrm.repositories.base import BaseRepository, TransactionCancelled
from nextcrm.utils.exceptions import ConflictError

logger = structlog.get_logger()


class ProfileRepository(BaseRepository[Profile]):
    """Repository for Profile entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize profile repository."""
        super().__init__(Profile, table_name)

    def get_by_id(self, profile_id: str) -> Profile | None:
        """Get profile by ID."""
        return self.get(pk=f"PROFILE#{profile_id}", sk=f"PROFILE#{profile_id}")

    def get_by_slug(self, slug: str) -> Profile | None:
        """Get profile by exact, case-sensitive slug using GSI1."""
        items, _ = self.query(
            pk=f"PROFILE_SLUG#{slug}",
            index_name="GSI1",
            limit=1,
        )
        return items[0] if items else None

    def create_profile(self, profile: Profile) -> Profile:
        """Create a profile and reserve its slug in one transaction.

        Raises:
            ConflictError: If the slug is already taken.
        """
        profile.update_timestamp()
        reservation = profile.get_slug_reservation_keys()
        reservation["profile_id"] = profile.id

        try:
            self.transact_write(
                [
                    {"Put": {"Item": self.build_item(profile), "ConditionExpression": "attribute_not_exists(PK)"}},
                    {"Put": {"Item": reservation, "ConditionExpression": "attribute_not_exists(PK)"}},
                ]
            )
        except TransactionCancelled as e:
            if e.failed_condition(1):
                raise ConflictError(
                    f"Slug '{profile.slug}' is already in use",
                    conflict_type="profile_slug",
                    details={"slug": profile.slug},
                ) from e
            raise ConflictError("Profile already exists", conflict_type="profile_id") from e

        logger.debug("Profile created with slug reservation", profile_id=profile.id, slug=profile.slug)
        return profile
