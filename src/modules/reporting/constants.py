"""Shared values of the reporting layer: statuses and sentinels."""

from enum import StrEnum

# Resolved value for a foreign key missing from its lookup
UNKNOWN = "Unknown"
# Result of a ratio whose denominator is zero
NOT_AVAILABLE = "N/A"
# Month bucket for records without a parseable date
UNDATED = "undated"


class LessonStatus(StrEnum):
    ATTENDED = "attended"
    CANCELLED = "cancelled"
    PENDING = "pending"


class PackageStatus(StrEnum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


LESSON_STATUSES = tuple(s.value for s in LessonStatus)
PACKAGE_STATUSES = tuple(s.value for s in PackageStatus)
