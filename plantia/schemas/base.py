from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire and in stored records."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

    @field_validator("*")
    @classmethod
    def datetimes_as_utc(cls, value):
        if isinstance(value, datetime):
            return as_utc(value)
        return value

    def to_record(self) -> dict:
        # Unset optionals stay absent so records round-trip unchanged
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def blank_to_none(value: Optional[str]) -> Optional[str]:
    """An empty or whitespace-only reference means no reference."""
    if value is None or not value.strip():
        return None
    return value
