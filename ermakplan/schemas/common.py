from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Optional, Tuple

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


def to_naive_utc(value: Any) -> Any:
    # Stored datetimes are naive UTC so SQL comparisons behave the same on every backend
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def empty_str_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


UtcDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]
OptionalFloat = Annotated[Optional[float], BeforeValidator(empty_str_to_none)]


class CamelModel(BaseModel):
    """JSON in/out uses camelCase; snake_case is accepted on input too."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UpdateModel(CamelModel):
    """Partial update payload. Unknown keys (id, userId, ...) are dropped silently."""
    non_nullable: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_null_for_required(self):
        for name in self.non_nullable:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class MessageResponse(BaseModel):
    message: str
