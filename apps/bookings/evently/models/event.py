from enum import Enum

from sqlalchemy import JSON, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, validates

from evently.models.base import Base, FieldRulesMixin, TimestampMixin, UUIDPrimaryKeyMixin
from evently.models.fields import FieldRule, LowerStr, NonEmptyStrList, StrList, enum_value
from evently.services.error_codes import ErrorCode


class EventMode(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    HYBRID = "hybrid"


StringList = JSON().with_variant(ARRAY(String()), "postgresql")


def _non_empty(label: str) -> dict[str, tuple[ErrorCode, str]]:
    return {"too_short": (ErrorCode.EMPTY_LIST, f"{label} must have at least one item")}


EVENT_FIELD_RULES: dict[str, FieldRule] = {
    "title": FieldRule("Title"),
    "slug": FieldRule("Slug", LowerStr, required=False),
    "description": FieldRule("Description"),
    "overview": FieldRule("Overview"),
    "image": FieldRule("Image", str),
    "venue": FieldRule("Venue"),
    "location": FieldRule("Location"),
    "date": FieldRule("Date", str),
    "time": FieldRule("Time", str),
    "mode": FieldRule(
        "Mode",
        str,
        enum_value(EventMode),
        messages={"enum": (ErrorCode.INVALID_MODE, "Mode must be online, offline, or hybrid")},
    ),
    "audience": FieldRule("Audience"),
    "agenda": FieldRule("Agenda", StrList, NonEmptyStrList, messages=_non_empty("Agenda")),
    "organizer": FieldRule("Organizer"),
    "tags": FieldRule(
        "Tags",
        StrList,
        NonEmptyStrList,
        required_message="Tags are required",
        messages=_non_empty("Tags"),
    ),
}


class Event(Base, FieldRulesMixin, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "events"
    __field_rules__ = EVENT_FIELD_RULES
    __normalized_fields__ = frozenset({"title", "date", "time"})

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    # Derived from title by the normalizer; unique across events
    slug: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    overview: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[str] = mapped_column(String(1024), nullable=False)
    venue: Mapped[str] = mapped_column(String(300), nullable=False)
    location: Mapped[str] = mapped_column(String(300), nullable=False)

    # Canonical YYYY-MM-DD and HH:MM, kept as strings
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    time: Mapped[str] = mapped_column(String(5), nullable=False)

    mode: Mapped[str] = mapped_column(String(16), nullable=False)
    audience: Mapped[str] = mapped_column(String(300), nullable=False)
    agenda: Mapped[list[str]] = mapped_column(StringList, nullable=False)
    organizer: Mapped[str] = mapped_column(String(300), nullable=False)
    tags: Mapped[list[str]] = mapped_column(StringList, nullable=False)

    @validates(*EVENT_FIELD_RULES)
    def _apply_field_rule(self, key, value):
        return self.__field_rules__[key].run(value)

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, slug={self.slug!r})>"
