"""Member records.

User = a person with login credentials, stored at USER#{user_id}.
Each registered email also owns an EMAIL#{email} claim record pointing at
the user; the claim is written insert-if-absent with the user so that two
registrations can never share an address, and login resolves it with a
key lookup instead of scanning the table.
"""

import enum


class UserRole(enum.StrEnum):
    MEMBER = "member"
    ADMIN = "admin"


class MembershipType(enum.StrEnum):
    BASIC = "basic"
    PREMIUM = "premium"
    STUDENT = "student"
    FAMILY = "family"


class SkillLevel(enum.StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


def user_key(user_id: str) -> tuple[str, str]:
    key = f"USER#{user_id}"
    return key, key


def email_claim_key(email: str) -> tuple[str, str]:
    key = f"EMAIL#{email.lower()}"
    return key, key


def public_profile(user: dict) -> dict:
    """Strip the password hash and key attributes from a stored user."""
    hidden = {"password_hash", "pk", "sk", "gsi1pk", "gsi1sk", "gsi2pk", "gsi2sk", "version"}
    return {k: v for k, v in user.items() if k not in hidden}
