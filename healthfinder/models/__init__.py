"""ORM models. Importing this package registers every table on Base.metadata."""

from healthfinder.models.clinic import Clinic
from healthfinder.models.review import Review

__all__ = ["Clinic", "Review"]
