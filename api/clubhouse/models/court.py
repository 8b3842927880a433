"""Court records.

A court is created by an admin and never physically deleted, only
deactivated. Active courts are listed through GSI1 (COURTS / COURT#{id}).
"""

import enum

COURT_CATALOG_PARTITION = "COURTS"


class CourtType(enum.StrEnum):
    INDOOR = "indoor"
    OUTDOOR = "outdoor"


def court_key(court_id: str) -> tuple[str, str]:
    key = f"COURT#{court_id}"
    return key, key


def court_catalog_sort_key(court_id: str) -> str:
    return f"COURT#{court_id}"
