"""
HealthFinder API — Clinic Query Composer
==========================================

What:  Builds a filtered, sorted, paginated view over the clinics table and
       the matching total count from loosely-typed query parameters.
Who:   Called by GET /clinics and GET /clinics/{id}.

Composition order:
    ┌──────────┐   ┌───────────────────────────────┐   ┌──────┐   ┌──────────┐
    │  search  │ + │ clinicType, openHours, dropin,│ → │ sort │ → │  page    │
    │ (OR)     │   │ avgRating (AND)               │   └──────┘   └──────────┘
    └──────────┘   └───────────────────────────────┘
                          │
                          └──→ COUNT(*) with the same predicates (no paging)
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from healthfinder.constants import (
    CLINIC_TYPE_EMERGENCY,
    CLINIC_TYPE_REGULAR,
    EMERGENCY_OPERATIONS,
    OPEN_AROUND_THE_CLOCK,
    OPEN_HOURS_ALL,
    OPEN_HOURS_OTHER,
    RATING_MAX,
    RATING_MIN,
    REGULAR_CARE_OPERATION,
    UNSPECIFIED,
)
from healthfinder.database import translate_store_error
from healthfinder.exceptions import InvalidQueryError, NotFoundError
from healthfinder.models import Clinic
from healthfinder.schemas.clinic import ClinicListResponse, ClinicResponse
from healthfinder.services.pagination import Page

logger = logging.getLogger(__name__)

# Any clinic attribute may be used as sortField
SORTABLE_FIELDS: Dict[str, ColumnElement] = {
    name: getattr(Clinic, name)
    for name in (
        "id",
        "region",
        "clinic_operation",
        "clinic_type",
        "clinic_name",
        "address",
        "open_hours",
        "drop_in",
        "review_count",
        "average_rating",
    )
}

_TRUTHY = {"true", "1", "yes", "on"}
_FALSY = {"false", "0", "no", "off", ""}


def parse_clinic_id(raw: str) -> uuid.UUID:
    """A malformed id cannot name an existing clinic, so it is a NotFoundError."""
    try:
        return uuid.UUID(str(raw))
    except (ValueError, AttributeError, TypeError):
        raise NotFoundError(resource="clinic", resource_id=str(raw))


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class ClinicQuery:
    """Validated form of the GET /clinics query string."""

    search: Optional[str] = None
    sort_field: Optional[str] = None
    sort_order: str = "asc"
    clinic_type: Optional[str] = None
    open_hours: Optional[str] = None
    drop_in: bool = False
    min_rating: Optional[int] = None
    page: Page = field(default_factory=Page.from_params)

    @classmethod
    def from_params(
        cls,
        search: Optional[str] = None,
        sort_field: Optional[str] = None,
        sort_order: Optional[str] = None,
        clinic_type: Optional[str] = None,
        open_hours: Optional[str] = None,
        dropin: Optional[str] = None,
        avg_rating: Optional[str] = None,
        page_size: Optional[str] = None,
        page_num: Optional[str] = None,
    ) -> "ClinicQuery":
        """
        Parse raw query-string values.

        Raises:
            InvalidQueryError: for malformed pagination, unknown sortField,
                               sortOrder other than asc/desc, openHours other
                               than all/other, non-boolean dropin, or an
                               avgRating that is not an integer in 1-5.
        """
        search = search.strip() if search and search.strip() else None

        sort_field = sort_field.strip() if sort_field and sort_field.strip() else None
        if sort_field is not None and sort_field not in SORTABLE_FIELDS:
            raise InvalidQueryError(
                message=f"Cannot sort by '{sort_field}'",
                parameter="sortField",
                context={"allowed": sorted(SORTABLE_FIELDS)},
            )

        order = (sort_order or "asc").strip().lower() or "asc"
        if order not in ("asc", "desc"):
            raise InvalidQueryError(
                message=f"sortOrder must be 'asc' or 'desc', got '{sort_order}'",
                parameter="sortOrder",
            )

        # Unknown clinicType values apply no filter
        kind = (clinic_type or "").strip().lower()
        kind = kind if kind in (CLINIC_TYPE_EMERGENCY, CLINIC_TYPE_REGULAR) else None

        hours = (open_hours or "").strip().lower() or None
        if hours is not None and hours not in (OPEN_HOURS_ALL, OPEN_HOURS_OTHER):
            raise InvalidQueryError(
                message=f"openHours must be 'all' or 'other', got '{open_hours}'",
                parameter="openHours",
            )

        flag = (dropin or "").strip().lower()
        if flag not in _TRUTHY and flag not in _FALSY:
            raise InvalidQueryError(
                message=f"dropin must be a boolean, got '{dropin}'",
                parameter="dropin",
            )

        min_rating = None
        if avg_rating is not None and str(avg_rating).strip() != "":
            text = str(avg_rating).strip()
            if text.isascii() and text.isdigit():
                min_rating = int(text)
            if min_rating is None or not RATING_MIN <= min_rating <= RATING_MAX:
                raise InvalidQueryError(
                    message=(
                        f"avgRating must be an integer between {RATING_MIN} "
                        f"and {RATING_MAX}, got '{avg_rating}'"
                    ),
                    parameter="avgRating",
                )

        return cls(
            search=search,
            sort_field=sort_field,
            sort_order=order,
            clinic_type=kind,
            open_hours=hours,
            drop_in=flag in _TRUTHY,
            min_rating=min_rating,
            page=Page.from_params(page_size, page_num),
        )

    def predicates(self) -> List[ColumnElement]:
        """Filter clauses, to be AND-combined by the caller."""
        clauses: List[ColumnElement] = []

        if self.search:
            pattern = f"%{_escape_like(self.search)}%"
            clauses.append(
                or_(
                    Clinic.region.ilike(pattern, escape="\\"),
                    Clinic.address.ilike(pattern, escape="\\"),
                )
            )

        if self.clinic_type == CLINIC_TYPE_EMERGENCY:
            clauses.append(Clinic.clinic_operation.in_(EMERGENCY_OPERATIONS))
        elif self.clinic_type == CLINIC_TYPE_REGULAR:
            clauses.append(Clinic.clinic_operation == REGULAR_CARE_OPERATION)

        if self.open_hours == OPEN_HOURS_ALL:
            clauses.append(Clinic.open_hours == OPEN_AROUND_THE_CLOCK)
        elif self.open_hours == OPEN_HOURS_OTHER:
            clauses.append(Clinic.open_hours != UNSPECIFIED)

        if self.drop_in:
            clauses.append(Clinic.drop_in != UNSPECIFIED)

        if self.min_rating is not None:
            clauses.append(Clinic.average_rating >= self.min_rating)

        return clauses


class ClinicService:
    """
    Read side of the clinic catalogue.

    Responsibilities:
        - list_clinics(): filtered/sorted/paginated page plus filtered count
        - get_clinic(): single clinic with reviews, NotFoundError when absent
    """

    async def list_clinics(self, db: AsyncSession, query: ClinicQuery) -> ClinicListResponse:
        where = query.predicates()

        stmt = select(Clinic).where(*where).options(selectinload(Clinic.reviews))
        if query.sort_field:
            column = SORTABLE_FIELDS[query.sort_field]
            stmt = stmt.order_by(column.asc() if query.sort_order == "asc" else column.desc())
        # Stable order across pages
        stmt = stmt.order_by(Clinic.id).offset(query.page.offset).limit(query.page.size)

        count_stmt = select(func.count()).select_from(Clinic).where(*where)

        try:
            total = (await db.execute(count_stmt)).scalar_one()
            clinics = list((await db.execute(stmt)).scalars().all())
        except (SQLAlchemyError, OSError) as e:
            logger.error("Store error listing clinics: %s", str(e), exc_info=True)
            raise translate_store_error(e, "Could not retrieve clinics. Please try again.")

        logger.debug(
            "Clinic query matched %d, returning page %d (%d items)",
            total,
            query.page.number,
            len(clinics),
        )
        return ClinicListResponse(
            clinics=[ClinicResponse.model_validate(c) for c in clinics],
            total_results=total,
        )

    async def get_clinic(self, db: AsyncSession, clinic_id: str) -> ClinicResponse:
        """
        Raises:
            NotFoundError: no clinic with that id (or the id is malformed).
        """
        cid = parse_clinic_id(clinic_id)
        try:
            result = await db.execute(
                select(Clinic).where(Clinic.id == cid).options(selectinload(Clinic.reviews))
            )
            clinic = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            logger.error("Store error fetching clinic %s: %s", cid, str(e))
            raise translate_store_error(
                e, "Could not retrieve the clinic. Please try again.", clinic_id=str(cid)
            )

        if clinic is None:
            raise NotFoundError(resource="clinic", resource_id=str(cid))
        return ClinicResponse.model_validate(clinic)


clinic_service = ClinicService()
