from .enrollment_import import batch_enroll, ingest_enrollment_rows
from .exceptions import (
    InvalidParameterError,
    NoRoomsAvailableError,
    NotFoundError,
    PersistenceError,
    SeatingError,
)
from .seating_generation import generate_seating

__all__ = [
    "batch_enroll",
    "generate_seating",
    "ingest_enrollment_rows",
    "InvalidParameterError",
    "NoRoomsAvailableError",
    "NotFoundError",
    "PersistenceError",
    "SeatingError",
]
