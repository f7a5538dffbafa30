"""
HealthFinder API — Review SQLAlchemy Model
============================================

What:  ORM model representing the `reviews` table.

A review belongs to exactly one clinic (clinic_id, NOT NULL foreign key)
and is immutable once created: there is no update or delete operation.
Field bounds are enforced by ReviewCreate before a row is ever built.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from healthfinder.constants import NAME_MAX_LENGTH, REVIEW_MAX_LENGTH, TITLE_MAX_LENGTH
from healthfinder.database import Base


class Review(Base):
    """A user-submitted review of a clinic."""

    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    review: Mapped[str] = mapped_column(String(REVIEW_MAX_LENGTH), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)

    review_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    clinic_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clinics.id", ondelete="CASCADE"),
        nullable=False,
    )

    clinic: Mapped["Clinic"] = relationship(back_populates="reviews")  # noqa: F821

    # Newest-first listings, globally and per clinic
    __table_args__ = (
        Index("idx_reviews_review_date", review_date.desc()),
        Index("idx_reviews_clinic_id_review_date", "clinic_id", review_date.desc()),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, clinic_id={self.clinic_id}, rating={self.rating})>"
