"""The single key-value table.

Every record (users, courts, bookings, schedule tokens) is one row. A row is
addressed by its primary key pair (pk, sk) and may also be reachable through
two secondary access paths, GSI1 and GSI2, each with its own (pk, sk) pair.
Everything else about the record lives in the JSON `data` column.
"""

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from clubhouse.models.base import Base

KEY_ATTRIBUTES = ("pk", "sk", "gsi1pk", "gsi1sk", "gsi2pk", "gsi2sk", "version")

INDEXES = {
    "GSI1": ("gsi1pk", "gsi1sk"),
    "GSI2": ("gsi2pk", "gsi2sk"),
}


class Item(Base):
    __tablename__ = "items"

    pk: Mapped[str] = mapped_column(String(255), primary_key=True)
    sk: Mapped[str] = mapped_column(String(255), primary_key=True)

    gsi1pk: Mapped[str | None] = mapped_column(String(255))
    gsi1sk: Mapped[str | None] = mapped_column(String(255))
    gsi2pk: Mapped[str | None] = mapped_column(String(255))
    gsi2sk: Mapped[str | None] = mapped_column(String(255))

    # Optimistic concurrency token, bumped by conditional writes
    version: Mapped[int] = mapped_column(default=0, nullable=False)

    data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    __table_args__ = (
        Index("ix_items_gsi1", "gsi1pk", "gsi1sk"),
        Index("ix_items_gsi2", "gsi2pk", "gsi2sk"),
    )

    def to_dict(self) -> dict:
        item = dict(self.data or {})
        for attr in KEY_ATTRIBUTES:
            value = getattr(self, attr)
            if value is not None:
                item[attr] = value
        return item

    @classmethod
    def from_dict(cls, item: dict) -> "Item":
        keys = {attr: item.get(attr) for attr in KEY_ATTRIBUTES}
        keys["version"] = keys["version"] or 0
        data = {k: v for k, v in item.items() if k not in KEY_ATTRIBUTES}
        return cls(**keys, data=data)

    def __repr__(self) -> str:
        return f"<Item {self.pk} / {self.sk}>"
