"""
HealthFinder API — Review Submission & Aggregate Updater
==========================================================

What:  Persists reviews and re-establishes the owning clinic's derived
       aggregates (review_count, average_rating); lists reviews.
Who:   Called by POST /clinics/{id}/review and the review list routes.

Submission Flow (one transaction):
    ┌────────────┐   ┌─────────────────┐   ┌──────────┐   ┌──────────────────┐
    │  Validate  │──▶│ Lock clinic row │──▶│  INSERT  │──▶│ UPDATE clinics   │
    │  payload   │   │ (404 if absent) │   │  review  │   │ SET count/avg =  │
    └────────────┘   └─────────────────┘   └──────────┘   │ (subqueries)     │
                                                          └──────────────────┘
    The aggregates are computed by the store from the authoritative review
    rows in the same statement, so each submission restores
    review_count == COUNT(reviews) and average_rating == ROUND(AVG(rating), 1)
    whatever happened before. The clinic row lock (FOR UPDATE on PostgreSQL,
    BEGIN IMMEDIATE on SQLite) serializes concurrent submissions per clinic.
"""

import logging
import uuid
from typing import Any, List, Mapping, Tuple, Union

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from healthfinder.database import translate_store_error
from healthfinder.exceptions import NotFoundError, ValidationError
from healthfinder.models import Clinic, Review
from healthfinder.schemas.common import SuccessResponse
from healthfinder.schemas.review import ReviewCreate, ReviewResponse, parse_review_payload
from healthfinder.services.clinic_service import parse_clinic_id
from healthfinder.services.pagination import Page

logger = logging.getLogger(__name__)


def aggregate_update(clinic_id: uuid.UUID):
    """UPDATE statement recomputing a clinic's aggregates from its reviews."""
    review_count = (
        select(func.count(Review.id))
        .where(Review.clinic_id == clinic_id)
        .scalar_subquery()
    )
    # coalesce: a clinic with no linked reviews averages 0
    average_rating = (
        select(func.coalesce(func.round(func.avg(Review.rating), 1), 0))
        .where(Review.clinic_id == clinic_id)
        .scalar_subquery()
    )
    return (
        update(Clinic)
        .where(Clinic.id == clinic_id)
        .values(review_count=review_count, average_rating=average_rating)
        .execution_options(synchronize_session=False)
    )


class ReviewService:
    """
    Write and list operations for reviews.

    Error Handling Strategy:
        Validation and clinic existence are settled before any row is
        written. Store failures roll back the whole submission, so a review
        never exists without its clinic's aggregates having been updated.
    """

    async def submit_review(
        self,
        db: AsyncSession,
        clinic_id: str,
        payload: Union[ReviewCreate, Mapping[str, Any]],
    ) -> SuccessResponse:
        """
        Create a review and update its clinic's aggregates atomically.

        Raises:
            ValidationError: payload out of bounds, or body clinic_id differs
                             from the path id. Nothing is written.
            NotFoundError: no such clinic. Nothing is written.
            StoreUnavailableError / DatabaseError: store failure, rolled back.
        """
        data = payload if isinstance(payload, ReviewCreate) else parse_review_payload(payload)
        cid = parse_clinic_id(clinic_id)

        if data.clinic_id is not None and data.clinic_id != cid:
            raise ValidationError(
                message="clinic_id in the body does not match the clinic in the path",
                fields=["clinic_id"],
            )

        try:
            locked = await db.execute(
                select(Clinic.id).where(Clinic.id == cid).with_for_update()
            )
            if locked.scalar_one_or_none() is None:
                await db.rollback()
                raise NotFoundError(resource="clinic", resource_id=str(cid))

            review = Review(
                review=data.review,
                rating=data.rating,
                name=data.name,
                title=data.title,
                clinic_id=cid,
            )
            db.add(review)
            await db.flush()

            await db.execute(aggregate_update(cid))
            totals = (
                await db.execute(
                    select(Clinic.review_count, Clinic.average_rating).where(Clinic.id == cid)
                )
            ).one()
            await db.commit()
        except (SQLAlchemyError, OSError) as e:
            await db.rollback()
            logger.error("Store error submitting review for clinic %s: %s", cid, str(e))
            raise translate_store_error(
                e, "Could not save the review. Please try again.", clinic_id=str(cid)
            )

        logger.info(
            "Review %s stored for clinic %s (rating=%d); clinic now has %d reviews, average %.1f",
            review.id,
            cid,
            data.rating,
            totals.review_count,
            totals.average_rating,
        )
        return SuccessResponse(success=True)

    async def list_reviews(
        self, db: AsyncSession, page: Page
    ) -> Tuple[List[ReviewResponse], int]:
        """All reviews, newest first. Returns (page items, total count)."""
        try:
            total = (await db.execute(select(func.count(Review.id)))).scalar_one()
            result = await db.execute(
                select(Review)
                .order_by(Review.review_date.desc(), Review.id)
                .offset(page.offset)
                .limit(page.size)
            )
            reviews = result.scalars().all()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Store error listing reviews: %s", str(e), exc_info=True)
            raise translate_store_error(e, "Could not retrieve reviews. Please try again.")

        return [ReviewResponse.model_validate(r) for r in reviews], total

    async def list_clinic_reviews(
        self, db: AsyncSession, clinic_id: str, page: Page
    ) -> Tuple[List[ReviewResponse], int]:
        """
        One clinic's reviews, newest first.

        Raises:
            NotFoundError: no such clinic.
        """
        cid = parse_clinic_id(clinic_id)
        try:
            exists = (
                await db.execute(select(Clinic.id).where(Clinic.id == cid))
            ).scalar_one_or_none()
            if exists is None:
                raise NotFoundError(resource="clinic", resource_id=str(cid))

            total = (
                await db.execute(
                    select(func.count(Review.id)).where(Review.clinic_id == cid)
                )
            ).scalar_one()
            result = await db.execute(
                select(Review)
                .where(Review.clinic_id == cid)
                .order_by(Review.review_date.desc(), Review.id)
                .offset(page.offset)
                .limit(page.size)
            )
            reviews = result.scalars().all()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Store error listing reviews of clinic %s: %s", cid, str(e))
            raise translate_store_error(
                e, "Could not retrieve reviews. Please try again.", clinic_id=str(cid)
            )

        return [ReviewResponse.model_validate(r) for r in reviews], total


review_service = ReviewService()
