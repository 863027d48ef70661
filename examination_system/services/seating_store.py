import logging
from typing import Iterable, List, Optional

from django.db import DatabaseError, transaction

from examination_system.models import Exam, SeatingArrangement

from .exceptions import NotFoundError, PersistenceError
from .seating_allocator import SeatAssignment

logger = logging.getLogger(__name__)


def replace_for_exam(exam_id: int, assignments: Iterable[SeatAssignment]) -> List[SeatingArrangement]:
    """
    Atomically swap every seating arrangement of the exam for ``assignments``.

    The exam row is locked for the duration of the transaction so concurrent
    regenerations of the same exam are applied one after the other (last
    writer wins). On failure the previous arrangements stay in place.
    """
    rows = [
        SeatingArrangement(
            exam_id=a.exam_id,
            student_id=a.student_id,
            subject_id=a.subject_id,
            room_id=a.room_id,
            seat_number=a.seat_number,
            invigilator_id=a.invigilator_id,
        )
        for a in assignments
    ]
    try:
        with transaction.atomic():
            if not Exam.objects.select_for_update().filter(pk=exam_id).exists():
                raise NotFoundError(f"Exam {exam_id} not found.")
            deleted, _ = SeatingArrangement.objects.filter(exam_id=exam_id).delete()
            created = SeatingArrangement.objects.bulk_create(rows)
    except DatabaseError as exc:
        logger.exception("Failed to replace seating arrangements for exam %s", exam_id)
        raise PersistenceError() from exc

    logger.info(
        "Replaced seating for exam %s: removed %s rows, inserted %s rows.",
        exam_id,
        deleted,
        len(created),
    )
    return created


def find_by_room(exam_id: int, room_id: int, subject_id: Optional[int] = None):
    """Seating arrangements for one room of an exam, ordered by seat label."""
    queryset = SeatingArrangement.objects.select_related("student", "room__building", "subject").filter(
        exam_id=exam_id,
        room_id=room_id,
    )
    if subject_id is not None:
        queryset = queryset.filter(subject_id=subject_id)
    return queryset.order_by("seat_number", "pk")
