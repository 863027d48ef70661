from typing import Any, Dict, Iterable, List, Mapping, Optional

from django.contrib.auth import get_user_model

from accounts.models import UserRole
from examination_system.models import Enrollment, Exam, Room, Subject

from .exceptions import InvalidParameterError, NoRoomsAvailableError, NotFoundError
from .seating_allocator import RoomSlot

EXPLICIT = "explicit"
FILTERED = "filtered"

# Older clients send the generation mode instead of the selection mode.
ROOM_SELECTION_ALIASES = {
    EXPLICIT: EXPLICIT,
    FILTERED: FILTERED,
    "manual": EXPLICIT,
    "auto": FILTERED,
}


def _coerce_id(value: Any, label: str) -> int:
    if isinstance(value, bool):
        raise InvalidParameterError(f"Invalid {label} id: {value}.")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"Invalid {label} id: {value}.")


def get_exam(exam_id) -> Exam:
    try:
        return Exam.objects.get(pk=exam_id)
    except (Exam.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Exam {exam_id} not found.")


def resolve_enrollments(exam_id) -> List[int]:
    """Return the ids of students enrolled in the exam, in enrollment order."""
    exam = get_exam(exam_id)
    student_ids = list(
        Enrollment.objects.filter(exam=exam)
        .order_by("enrolled_at", "pk")
        .values_list("student_id", flat=True)
    )
    if not student_ids:
        raise NotFoundError("No students enrolled in this exam.")
    return student_ids


def _room_slots(queryset) -> List[RoomSlot]:
    return [
        RoomSlot(
            room_id=room.pk,
            capacity=room.capacity,
            building_id=room.building_id,
            room_number=room.room_number,
        )
        for room in queryset.order_by("room_number", "pk")
    ]


def resolve_rooms(mode: str, room_ids: Optional[Iterable[Any]] = None, building_id: Any = None) -> List[RoomSlot]:
    """
    Resolve the candidate rooms for a generation run.

    ``explicit`` fetches exactly the listed rooms; ``filtered`` returns every
    room, optionally restricted to one building. Both are ordered by room number.
    """
    selection = ROOM_SELECTION_ALIASES.get((mode or "").strip().lower())
    if selection is None:
        raise InvalidParameterError(f"Unknown room selection mode: {mode}.")

    if selection == EXPLICIT:
        requested = list(dict.fromkeys(_coerce_id(pk, "room") for pk in (room_ids or [])))
        if not requested:
            raise InvalidParameterError("Explicit room selection requires at least one room id.")
        queryset = Room.objects.filter(pk__in=requested)
        found = set(queryset.values_list("pk", flat=True))
        missing = [pk for pk in requested if pk not in found]
        if missing:
            raise NotFoundError(f"Rooms not found: {', '.join(str(pk) for pk in missing)}.")
    else:
        queryset = Room.objects.all()
        if building_id not in (None, "", "all"):
            queryset = queryset.filter(building_id=_coerce_id(building_id, "building"))

    rooms = _room_slots(queryset)
    if not rooms:
        raise NoRoomsAvailableError()
    return rooms


def resolve_subject_scope(exam_id, generate_for_all_subjects: bool, subject_id: Any = None) -> List[Optional[int]]:
    """
    Return the subject ids to seat the exam for.

    ``[None]`` means the exam is seated without a subject. An exam with no linked
    subjects yields an empty scope when all subjects are requested.
    """
    exam = get_exam(exam_id)
    if generate_for_all_subjects:
        return list(exam.subjects.order_by("code", "pk").values_list("pk", flat=True))
    if subject_id in (None, ""):
        return [None]
    subject_pk = _coerce_id(subject_id, "subject")
    if not Subject.objects.filter(pk=subject_pk).exists():
        raise NotFoundError(f"Subject {subject_id} not found.")
    return [subject_pk]


def resolve_invigilator_pool() -> List[int]:
    """Active faculty members eligible to invigilate, ordered by id."""
    User = get_user_model()
    return list(
        User.objects.filter(role=UserRole.FACULTY, is_active=True)
        .order_by("pk")
        .values_list("pk", flat=True)
    )


def resolve_manual_invigilators(mapping: Optional[Mapping[Any, Any]]) -> Dict[int, int]:
    """Validate caller supplied room -> invigilator overrides."""
    if not mapping:
        return {}
    overrides = {
        _coerce_id(room_id, "room"): _coerce_id(invigilator_id, "invigilator")
        for room_id, invigilator_id in mapping.items()
        if invigilator_id not in (None, "")
    }
    User = get_user_model()
    known = set(
        User.objects.filter(pk__in=set(overrides.values()), role=UserRole.FACULTY, is_active=True).values_list(
            "pk", flat=True
        )
    )
    missing = sorted(set(overrides.values()) - known)
    if missing:
        raise NotFoundError(f"Active faculty invigilators not found: {', '.join(str(pk) for pk in missing)}.")
    return overrides
