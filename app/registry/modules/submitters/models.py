from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.registry.models import Base


class SubmitterSession(Base):
    """
    One row per submitter entry. No uniqueness on (name, mobile): concurrent
    first entries may both insert; readers take the most recently active row.
    """

    __tablename__ = "submitter_sessions"
    __table_args__ = (
        Index("idx_submitter_sessions_identity", "submitter_name", "submitter_mobile", "last_active_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    submitter_name: Mapped[str] = mapped_column(Text, nullable=False)
    submitter_mobile: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    last_active_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
