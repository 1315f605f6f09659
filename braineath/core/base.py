"""Shared pieces for persisted record models."""

import datetime as dt
from typing import Annotated
from uuid import UUID, uuid4

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from braineath.utils.config import config

SCALE_MIN = config.scale_min
SCALE_MAX = config.scale_max


def require_text(value: str) -> str:
    """Strip surrounding whitespace and reject blank text."""
    value = value.strip()
    if not value:
        raise ValueError("text must not be blank")
    return value


def optional_text(value: str | None) -> str | None:
    """Strip optional text, turning blank strings into None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


# Bounded 0-10 scale used for intensities, energy, stress and mood ratings.
Scale = Annotated[int, Field(ge=SCALE_MIN, le=SCALE_MAX)]

Text = Annotated[str, AfterValidator(require_text)]
OptionalText = Annotated[str | None, AfterValidator(optional_text)]


class Record(BaseModel):
    """Base for every persisted entity.

    The identifier is allocated at construction and cannot be reassigned.
    Assignments are validated so bounded fields stay in range after updates.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4, frozen=True)


class DatedRecord(Record):
    """A record stamped with the moment it was created."""

    date: dt.datetime = Field(default_factory=dt.datetime.now)

    @property
    def day(self) -> dt.date:
        """Calendar day the record belongs to."""
        return self.date.date()


def clean_list(values: list[str]) -> list[str]:
    """Strip items, dropping blanks and duplicates while keeping order."""
    cleaned: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned
