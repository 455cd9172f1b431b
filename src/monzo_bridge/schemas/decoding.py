"""
Pydantic base shared by all wire records.

Rules:
- Missing or null fields decode to the zero value of their type
- Present fields of the wrong JSON type are a SchemaError, never coerced
- Integers are never accepted from floats or bools (minor units stay exact)
- Unknown keys are ignored; strict records (extra="forbid") reject them
"""

from collections.abc import Mapping
from typing import Annotated, Any, Optional, TypeVar

from pydantic import (
    AwareDatetime,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    ValidationError,
    model_validator,
)

M = TypeVar("M", bound="WireModel")


class SchemaError(ValueError):
    """A JSON value did not match the expected record shape."""

    pass


def _blank_is_unset(value: Any) -> Any:
    # Monzo sends "settled": "" for transactions that have not settled yet
    return None if value == "" else value


# RFC 3339 timestamp; absent, null or "" decode to None
Timestamp = Annotated[Optional[AwareDatetime], BeforeValidator(_blank_is_unset)]

# Same, but an empty string is a type error
StrictTimestamp = Optional[AwareDatetime]


def describe_errors(what: str, error: ValidationError) -> str:
    """Flatten a ValidationError into one line naming each failing field."""
    parts = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        parts.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return f"{what}: {'; '.join(parts)}"


def expect_object(value: Any, what: str) -> Mapping[str, Any]:
    """Require a JSON object (used for response envelopes)."""
    if not isinstance(value, Mapping):
        raise SchemaError(f"{what}: expected JSON object, got {type(value).__name__}")
    return value


class WireModel(BaseModel):
    """Base for records decoded from Monzo JSON."""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        """Treat null like absent so declared fields fall back to their defaults."""
        if isinstance(data, dict):
            return {
                key: value
                for key, value in data.items()
                if value is not None or key not in cls.model_fields
            }
        return data

    @classmethod
    def from_api_response(cls: type[M], data: Any) -> M:
        """
        Decode one record from parsed JSON.

        Raises:
            SchemaError: If the value is not an object or a field has the
                wrong type (or is unknown, for strict records)
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise SchemaError(describe_errors(cls.__name__, e)) from e

    @classmethod
    def from_api_list(cls: type[M], data: Any) -> list[M]:
        """Decode a JSON array of records; absent or null is an empty list."""
        if data is None:
            return []
        if not isinstance(data, list):
            raise SchemaError(f"{cls.__name__}: expected array, got {type(data).__name__}")
        return [cls.from_api_response(item) for item in data]

