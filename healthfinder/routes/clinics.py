"""
HealthFinder API — Clinic & Review Route Handlers
===================================================

What:  HTTP surface for clinics and their reviews.
How:   Routes are thin: they collect raw query strings, delegate to the
       services and set status codes/headers. Errors raised by services are
       turned into JSON by the global exception handlers.

Route Inventory:
    GET  /clinics                  filtered/sorted/paginated clinic list
    GET  /clinics/reviews          all reviews, newest first
    GET  /clinics/{id}             one clinic with its reviews
    GET  /clinics/{id}/reviews     one clinic's reviews, newest first
    POST /clinics/{id}/review      submit a review, update aggregates

/clinics/reviews is registered before /clinics/{id} so that "reviews" is
never read as a clinic id.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from healthfinder.database import get_db_session
from healthfinder.schemas.clinic import ClinicListResponse, ClinicResponse
from healthfinder.schemas.common import ErrorResponse, SuccessResponse
from healthfinder.schemas.review import ReviewCreate, ReviewResponse
from healthfinder.services.clinic_service import ClinicQuery, clinic_service
from healthfinder.services.pagination import Page
from healthfinder.services.review_service import review_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clinics", tags=["Clinics"])

_PAGE_SIZE_DOC = "Items per page (positive integer)"
_PAGE_NUM_DOC = "1-indexed page number"


@router.get(
    "",
    response_model=ClinicListResponse,
    responses={
        400: {"description": "Malformed query parameters", "model": ErrorResponse},
    },
    summary="Search, filter, sort and paginate clinics",
)
async def list_clinics(
    search: str | None = Query(
        default=None,
        description="Case-insensitive substring matched against region or address",
    ),
    sort_field: str | None = Query(default=None, alias="sortField"),
    sort_order: str | None = Query(default=None, alias="sortOrder", description="asc or desc"),
    clinic_type: str | None = Query(
        default=None, alias="clinicType", description="emg (emergency) or reg (regular care)"
    ),
    open_hours: str | None = Query(
        default=None, alias="openHours", description="all (around the clock) or other"
    ),
    dropin: str | None = Query(default=None, description="Only clinics accepting drop-ins"),
    avg_rating: str | None = Query(
        default=None, alias="avgRating", description="Minimum average rating, 1-5"
    ),
    page_size: str | None = Query(default=None, alias="pageSize", description=_PAGE_SIZE_DOC),
    page_num: str | None = Query(default=None, alias="pageNum", description=_PAGE_NUM_DOC),
    db: AsyncSession = Depends(get_db_session),
) -> ClinicListResponse:
    query = ClinicQuery.from_params(
        search=search,
        sort_field=sort_field,
        sort_order=sort_order,
        clinic_type=clinic_type,
        open_hours=open_hours,
        dropin=dropin,
        avg_rating=avg_rating,
        page_size=page_size,
        page_num=page_num,
    )
    return await clinic_service.list_clinics(db=db, query=query)


@router.get(
    "/reviews",
    response_model=List[ReviewResponse],
    responses={400: {"description": "Malformed pagination", "model": ErrorResponse}},
    summary="List all reviews, newest first",
)
async def list_reviews(
    response: Response,
    page_size: str | None = Query(default=None, alias="pageSize", description=_PAGE_SIZE_DOC),
    page_num: str | None = Query(default=None, alias="pageNum", description=_PAGE_NUM_DOC),
    db: AsyncSession = Depends(get_db_session),
) -> List[ReviewResponse]:
    page = Page.from_params(page_size, page_num)
    reviews, total = await review_service.list_reviews(db=db, page=page)
    response.headers["X-Total-Count"] = str(total)
    return reviews


@router.get(
    "/{clinic_id}",
    response_model=ClinicResponse,
    responses={404: {"description": "Clinic not found", "model": ErrorResponse}},
    summary="Get a single clinic with its reviews",
)
async def get_clinic(
    clinic_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ClinicResponse:
    return await clinic_service.get_clinic(db=db, clinic_id=clinic_id)


@router.get(
    "/{clinic_id}/reviews",
    response_model=List[ReviewResponse],
    responses={
        400: {"description": "Malformed pagination", "model": ErrorResponse},
        404: {"description": "Clinic not found", "model": ErrorResponse},
    },
    summary="List one clinic's reviews, newest first",
)
async def list_clinic_reviews(
    clinic_id: str,
    response: Response,
    page_size: str | None = Query(default=None, alias="pageSize", description=_PAGE_SIZE_DOC),
    page_num: str | None = Query(default=None, alias="pageNum", description=_PAGE_NUM_DOC),
    db: AsyncSession = Depends(get_db_session),
) -> List[ReviewResponse]:
    page = Page.from_params(page_size, page_num)
    reviews, total = await review_service.list_clinic_reviews(
        db=db, clinic_id=clinic_id, page=page
    )
    response.headers["X-Total-Count"] = str(total)
    return reviews


@router.post(
    "/{clinic_id}/review",
    status_code=201,
    response_model=SuccessResponse,
    responses={
        400: {"description": "Review payload out of bounds", "model": ErrorResponse},
        404: {"description": "Clinic not found", "model": ErrorResponse},
    },
    summary="Submit a review and update the clinic's rating",
)
async def submit_review(
    clinic_id: str,
    payload: ReviewCreate,
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    return await review_service.submit_review(db=db, clinic_id=clinic_id, payload=payload)
