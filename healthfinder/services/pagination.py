"""
HealthFinder API — Page Parameters
====================================

Parses the loosely-typed pageSize / pageNum query strings shared by every
list endpoint. Page numbers are 1-indexed; offset = pageSize * (pageNum - 1).
"""

from dataclasses import dataclass
from typing import Optional

from healthfinder.config import settings
from healthfinder.exceptions import InvalidQueryError

# Largest OFFSET the store accepts (signed 64-bit)
MAX_OFFSET = 2**63 - 1


def parse_positive_int(raw: Optional[str], parameter: str, default: int) -> int:
    """Parse a strictly positive integer query value; absent/blank → default."""
    if raw is None or str(raw).strip() == "":
        return default
    text = str(raw).strip()
    # Plain ASCII digits only: no sign, no "1_0", no non-ASCII numerals
    if not (text.isascii() and text.isdigit()) or int(text) < 1:
        raise InvalidQueryError(
            message=f"{parameter} must be a positive integer, got '{raw}'",
            parameter=parameter,
        )
    return int(text)


@dataclass(frozen=True)
class Page:
    size: int
    number: int

    @property
    def offset(self) -> int:
        return self.size * (self.number - 1)

    @classmethod
    def from_params(
        cls,
        page_size: Optional[str] = None,
        page_num: Optional[str] = None,
    ) -> "Page":
        """
        Raises:
            InvalidQueryError: non-numeric, zero or negative values, a page
                               size above settings.max_page_size, or a page
                               number whose offset the store cannot address.
        """
        size = parse_positive_int(page_size, "pageSize", settings.default_page_size)
        if size > settings.max_page_size:
            raise InvalidQueryError(
                message=f"pageSize must not exceed {settings.max_page_size}",
                parameter="pageSize",
                context={"max_page_size": settings.max_page_size},
            )
        number = parse_positive_int(page_num, "pageNum", 1)
        if size * (number - 1) > MAX_OFFSET:
            raise InvalidQueryError(
                message=f"pageNum {number} is out of range",
                parameter="pageNum",
            )
        return cls(size=size, number=number)
