# File: /tablekit/models/soft_delete.py | Version: 1.0 | Title: Soft-delete capability for table resources
from __future__ import annotations

from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import Column, DateTime


class SoftDeletable:
    """
    Mixin marking a mapped model as soft-deletable.

    Table queries hide rows with a non-null ``deleted_at`` unless a Trashed
    filter widens the scope. Membership is checked with ``issubclass``.
    """

    deleted_at = Column(DateTime, nullable=True, index=True)

    def soft_delete(self, when: Optional[datetime] = None) -> None:
        self.deleted_at = when or datetime.now(UTC).replace(tzinfo=None)

    def restore(self) -> None:
        self.deleted_at = None

    @property
    def trashed(self) -> bool:
        return self.deleted_at is not None


def is_soft_deletable(model) -> bool:
    cls = model if isinstance(model, type) else type(model)
    return issubclass(cls, SoftDeletable)
