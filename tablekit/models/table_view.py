# File: /tablekit/models/table_view.py | Version: 1.0 | Title: SQLAlchemy model for saved table views
from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text, func

from tablekit.db.base_class import Base


class TableView(Base):
    __tablename__ = "table_views"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=True)

    # Fully-qualified Table class plus the optional named instance on the page
    table_class = Column(String, nullable=False)
    table_name = Column(String, nullable=True)

    title = Column(String, nullable=False)

    # Serialized remembered constructor params (scopes views per table instance)
    state_payload = Column(Text, nullable=True)
    # Normalized query params, replayable through TableRequest
    request_payload = Column(JSON, nullable=False)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_table_views_user", "user_id"),
        Index("ix_table_views_table", "table_class", "table_name"),
    )
