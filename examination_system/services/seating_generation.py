import logging
import random
from typing import Any, Dict, Mapping, Optional

from .seating_allocator import allocate_seating, validate_students_per_room
from .seating_inputs import (
    get_exam,
    resolve_enrollments,
    resolve_invigilator_pool,
    resolve_manual_invigilators,
    resolve_rooms,
    resolve_subject_scope,
)
from .seating_store import replace_for_exam

logger = logging.getLogger(__name__)


def generate_seating(
    exam_id: int,
    subject_scope: Mapping[str, Any],
    room_selection: Mapping[str, Any],
    *,
    room_prefix: str,
    seat_prefix: str,
    students_per_room: int,
    manual_invigilators: Optional[Mapping[Any, Any]] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """
    Generate and persist the seating plan for one exam.

    ``subject_scope`` is ``{"all_subjects": bool, "subject_id": id | None}`` and
    ``room_selection`` is ``{"mode": "explicit" | "filtered", "room_ids": [...],
    "building_id": id | None}``. Every input is resolved and validated before
    allocation starts, so a failure never leaves a partial plan behind.
    """
    students_per_room = validate_students_per_room(students_per_room)
    exam = get_exam(exam_id)
    student_ids = resolve_enrollments(exam.pk)
    rooms = resolve_rooms(
        room_selection.get("mode"),
        room_ids=room_selection.get("room_ids"),
        building_id=room_selection.get("building_id"),
    )
    subjects = resolve_subject_scope(
        exam.pk,
        bool(subject_scope.get("all_subjects")),
        subject_scope.get("subject_id"),
    )
    overrides = resolve_manual_invigilators(manual_invigilators)

    if not subjects:
        logger.warning("Exam %s has no linked subjects; no seating generated.", exam.pk)
        return {"created": [], "count": 0, "rooms_used": 0, "over_capacity_rooms": []}

    pool = resolve_invigilator_pool()
    logger.info(
        "Generating seating for exam %s: %s students, %s subjects, %s rooms, %s invigilators.",
        exam.pk,
        len(student_ids),
        len(subjects),
        len(rooms),
        len(pool),
    )

    result = allocate_seating(
        exam.pk,
        student_ids,
        rooms,
        subjects,
        room_prefix=room_prefix,
        seat_prefix=seat_prefix,
        students_per_room=students_per_room,
        manual_invigilators=overrides,
        invigilator_pool=pool,
        rng=rng,
    )

    over_capacity = result.over_capacity_rooms(rooms)
    for entry in over_capacity:
        logger.warning(
            "Room %s holds %s students for exam %s but seats %s.",
            entry["room_id"],
            entry["assigned"],
            exam.pk,
            entry["capacity"],
        )

    created = replace_for_exam(exam.pk, result.assignments)
    return {
        "created": created,
        "count": len(created),
        "rooms_used": len(result.rooms_used()),
        "over_capacity_rooms": over_capacity,
    }
