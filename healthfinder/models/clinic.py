"""
HealthFinder API — Clinic SQLAlchemy Model
============================================

What:  ORM model representing the `clinics` table.
Who:   Read by ClinicService, aggregate columns written by ReviewService,
       rows bulk-inserted by the seeding command.

Table Design:
    - UUID primary key, assigned on insert
    - Descriptive columns mirror the imported dataset one-to-one
    - review_count / average_rating are derived from the `reviews` rows and
      recomputed by the store on every review submission
    - Reviews are reached through reviews.clinic_id only; no reference list
      is stored on the clinic row
"""

import uuid
from typing import List

from sqlalchemy import Index, Integer, Numeric, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from healthfinder.database import Base


class Clinic(Base):
    """
    A health facility.

    Lifecycle:
        1. Created out-of-band by the seeding command
        2. Aggregates updated by review submission
        3. Never deleted by any API operation
    """

    __tablename__ = "clinics"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    region: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    clinic_operation: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    clinic_type: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    clinic_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    address: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    open_hours: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    drop_in: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # ── Derived aggregates ────────────────────────────────────────────────
    review_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    # One decimal place, 0.0 - 5.0
    average_rating: Mapped[float] = mapped_column(
        Numeric(3, 1, asdecimal=False),
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    reviews: Mapped[List["Review"]] = relationship(  # noqa: F821
        back_populates="clinic",
        order_by="Review.review_date.desc()",
    )

    __table_args__ = (
        Index("idx_clinics_region", "region"),
        Index("idx_clinics_average_rating", "average_rating"),
    )

    def __repr__(self) -> str:
        return (
            f"<Clinic(id={self.id}, name='{self.clinic_name}', "
            f"reviews={self.review_count}, rating={self.average_rating})>"
        )
