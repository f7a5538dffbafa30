"""
HealthFinder API — Clinic Schemas
===================================

What:  Response models for clinic listings and clinic detail.
"""

import uuid
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from healthfinder.schemas.review import ReviewResponse


class ClinicResponse(BaseModel):
    """A clinic with its reviews attached (newest first)."""
    id: uuid.UUID
    region: str
    clinic_operation: str
    clinic_type: str
    clinic_name: str
    address: str
    open_hours: str
    drop_in: str
    review_count: int
    average_rating: float
    reviews: List[ReviewResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class ClinicListResponse(BaseModel):
    """
    One page of matching clinics.

    total_results counts every clinic matching the search and filters,
    independent of pageSize/pageNum.
    """
    clinics: List[ClinicResponse] = Field(description="The requested page")
    total_results: int = Field(description="Matches before pagination")
