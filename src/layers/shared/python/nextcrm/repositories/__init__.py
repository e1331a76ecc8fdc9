"""DynamoDB repositories for NextCRM entities."""

from nextcrm.repositories.base import BaseRepository, TransactionCancelled
from nextcrm.repositories.lead import LeadRepository
from nextcrm.repositories.profile import ProfileRepository
from nextcrm.repositories.template import TemplateRepository

__all__ = [
    "BaseRepository",
    "TransactionCancelled",
    "LeadRepository",
    "ProfileRepository",
    "TemplateRepository",
]
