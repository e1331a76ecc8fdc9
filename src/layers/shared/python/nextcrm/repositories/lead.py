"""Lead repository for DynamoDB operations.

Leads are append-only: there is no update or delete here.
"""

from nextcrm.models.lead import Lead
from nextcrm.repositories.base import BaseRepository


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize lead repository."""
        super().__init__(Lead, table_name)

    def create_lead(self, lead: Lead) -> Lead:
        """Append a lead."""
        return self.create(lead)

    def list_by_profile(self, profile_id: str, limit: int = 50) -> list[Lead]:
        """List a profile's leads, newest first."""
        items, _ = self.query(
            pk=f"PROFILE#{profile_id}",
            sk_begins_with="LEAD#",
            limit=limit,
            scan_forward=False,
        )
        return items
