import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from evently.models.base import Base, FieldRulesMixin, TimestampMixin, UUIDPrimaryKeyMixin
from evently.models.fields import EmailAddress, FieldRule, LowerStr
from evently.services.error_codes import ErrorCode

BOOKING_FIELD_RULES: dict[str, FieldRule] = {
    "event_id": FieldRule("Event ID", uuid.UUID),
    "email": FieldRule(
        "Email",
        LowerStr,
        EmailAddress,
        messages={
            "string_pattern_mismatch": (
                ErrorCode.INVALID_EMAIL,
                "Please provide a valid email address",
            ),
        },
    ),
}


class Booking(Base, FieldRulesMixin, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "bookings"
    # One booking per email per event
    __table_args__ = (UniqueConstraint("event_id", "email", name="uq_bookings_event_email"),)
    __field_rules__ = BOOKING_FIELD_RULES

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False)

    @validates(*BOOKING_FIELD_RULES)
    def _apply_field_rule(self, key, value):
        return self.__field_rules__[key].run(value)

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, event={self.event_id}, email={self.email!r})>"
