"""All models imported here for table discovery."""

from clubhouse.models.base import Base
from clubhouse.models.booking import BookingStatus, PaymentStatus
from clubhouse.models.court import CourtType
from clubhouse.models.item import Item
from clubhouse.models.member import MembershipType, SkillLevel, UserRole

__all__ = [
    "Base",
    "Item",
    "BookingStatus",
    "PaymentStatus",
    "CourtType",
    "UserRole",
    "MembershipType",
    "SkillLevel",
]
