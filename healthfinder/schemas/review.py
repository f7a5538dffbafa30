"""
HealthFinder API — Review Schemas
===================================

What:  Request and response models for reviews.
How:   ReviewCreate carries the canonical bounds (rating 1-5, trimmed text
       lengths). FastAPI validates request bodies against it; the service
       validates plain dicts against it too, so both paths report the same
       ValidationError.
"""

import uuid
from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from healthfinder.constants import (
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    RATING_MAX,
    RATING_MIN,
    REVIEW_MAX_LENGTH,
    REVIEW_MIN_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)
from healthfinder.exceptions import ValidationError
from healthfinder.schemas.common import error_fields, error_summaries


class ReviewCreate(BaseModel):
    """
    Payload of POST /clinics/{id}/review.

    Text fields are trimmed before their length is checked. `clinic_id` is
    optional; when present it must name the same clinic as the path.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    review: str = Field(min_length=REVIEW_MIN_LENGTH, max_length=REVIEW_MAX_LENGTH)
    rating: int = Field(ge=RATING_MIN, le=RATING_MAX, strict=True)
    name: str = Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    title: str = Field(min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    clinic_id: Optional[uuid.UUID] = None


class ReviewResponse(BaseModel):
    id: uuid.UUID
    review: str
    rating: int
    name: str
    title: str
    review_date: datetime
    clinic_id: uuid.UUID

    model_config = ConfigDict(from_attributes=True)


def parse_review_payload(data: Mapping[str, Any]) -> ReviewCreate:
    """
    Validate a raw payload, raising our ValidationError on failure.

    Raises:
        ValidationError: with `fields` naming every offending field.
    """
    try:
        return ReviewCreate.model_validate(data)
    except PydanticValidationError as e:
        fields = error_fields(e.errors())
        raise ValidationError(
            message=f"Review payload is invalid: {', '.join(fields)}",
            fields=fields,
            context={"errors": error_summaries(e.errors())},
        ) from e
