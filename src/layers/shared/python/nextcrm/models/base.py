"""Base Pydantic models with DynamoDB serialization."""

import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, ClassVar, Self

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field
from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


class TimestampMixin(PydanticBaseModel):
    """Mixin for created_at and updated_at timestamps."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class BaseModel(TimestampMixin):
    """Base model with ID generation and DynamoDB serialization.

    All entity models should inherit from this class. Fields listed in
    ``_json_fields`` are stored as a single JSON string attribute so that
    arbitrary author data never hits DynamoDB's nesting and type limits.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
    )

    id: str = Field(default_factory=generate_ulid)
    version: int = Field(default=1, description="Optimistic locking version")

    _json_fields: ClassVar[tuple[str, ...]] = ()

    def to_dynamodb(self) -> dict[str, Any]:
        """Serialize model to DynamoDB item format."""
        data = self.model_dump(mode="json", by_alias=True)
        for name in self._json_fields:
            if data.get(name) is not None:
                data[name] = json.dumps(data[name], separators=(",", ":"), sort_keys=True)
        return self._serialize_value(data)

    @classmethod
    def _serialize_value(cls, value: Any) -> Any:
        """Recursively serialize values for DynamoDB.

        Converts floats to Decimal (DynamoDB requirement) and drops None values.
        """
        if isinstance(value, dict):
            return {k: cls._serialize_value(v) for k, v in value.items() if v is not None}
        if isinstance(value, list):
            return [cls._serialize_value(item) for item in value]
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, float):
            return Decimal(str(value))
        return value

    @classmethod
    def from_dynamodb(cls, item: dict[str, Any]) -> Self:
        """Deserialize DynamoDB item to model instance.

        Datetime strings are left for pydantic to parse against the field types.
        """
        data = cls._deserialize_value(item)
        for name in cls._json_fields:
            if isinstance(data.get(name), str):
                data[name] = json.loads(data[name])
        return cls.model_validate(data)

    @classmethod
    def _deserialize_value(cls, value: Any) -> Any:
        """Recursively convert DynamoDB Decimals back to int or float."""
        if isinstance(value, dict):
            return {k: cls._deserialize_value(v) for k, v in value.items()}
        if isinstance(value, list):
            return [cls._deserialize_value(item) for item in value]
        if isinstance(value, Decimal):
            if value % 1 == 0:
                return int(value)
            return float(value)
        return value

    def get_pk(self) -> str:
        """Get the partition key for this entity."""
        raise NotImplementedError("Subclasses must implement get_pk()")

    def get_sk(self) -> str:
        """Get the sort key for this entity."""
        raise NotImplementedError("Subclasses must implement get_sk()")

    def get_keys(self) -> dict[str, str]:
        """Get both PK and SK as a dictionary."""
        return {"PK": self.get_pk(), "SK": self.get_sk()}

    def get_gsi1_keys(self) -> dict[str, str] | None:
        """Get GSI1 keys for this entity, if it is indexed."""
        return None

    def update_timestamp(self) -> None:
        """Update the updated_at timestamp to now."""
        self.updated_at = utc_now()

    def increment_version(self) -> None:
        """Increment the version for optimistic locking."""
        self.version += 1
