from __future__ import annotations

from sqlalchemy import Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.registry.models import Base


class Profile(Base):
    __tablename__ = "profiles"
    __table_args__ = (
        Index("idx_profiles_submitter", "submitter_name", "submitter_mobile"),
        Index("idx_profiles_submitter_mobile", "submitter_mobile"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    name: Mapped[str] = mapped_column(Text, nullable=False)
    relation: Mapped[str] = mapped_column(Text, nullable=False)
    dob: Mapped[str] = mapped_column(Text, nullable=False)  # ISO date string, as submitted
    nakshatra: Mapped[str] = mapped_column(Text, nullable=False)
    rashi: Mapped[str] = mapped_column(Text, nullable=False)
    contact_number: Mapped[str | None] = mapped_column(Text, nullable=True)
    occupation: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)

    # Nullable: rows submitted before submitter capture existed have neither.
    submitter_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitter_mobile: Mapped[str | None] = mapped_column(Text, nullable=True)
