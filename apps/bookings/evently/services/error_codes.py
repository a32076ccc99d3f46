from enum import Enum


class ErrorCode(str, Enum):
    # validation
    FIELD_REQUIRED = "FIELD_REQUIRED"
    FIELD_INVALID = "FIELD_INVALID"
    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    INVALID_CALENDAR_DATE = "INVALID_CALENDAR_DATE"
    INVALID_TIME_FORMAT = "INVALID_TIME_FORMAT"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_MODE = "INVALID_MODE"
    EMPTY_LIST = "EMPTY_LIST"
    EMPTY_SLUG = "EMPTY_SLUG"
    UNSUPPORTED_UPDATE_OPERATOR = "UNSUPPORTED_UPDATE_OPERATOR"

    # references / lookups
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"

    # conflicts
    DUPLICATE_SLUG = "DUPLICATE_SLUG"
    DUPLICATE_BOOKING = "DUPLICATE_BOOKING"
    SLUG_ATTEMPTS_EXHAUSTED = "SLUG_ATTEMPTS_EXHAUSTED"
    INTEGRITY_CONFLICT = "INTEGRITY_CONFLICT"

    # storage
    DB_CONNECTION_FAILED = "DB_CONNECTION_FAILED"
