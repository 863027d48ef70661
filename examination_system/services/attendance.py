from typing import Dict, Iterable, List, Optional

from django.db import transaction

from examination_system.models import Attendance, AttendanceStatus

from .exceptions import InvalidParameterError
from .seating_store import find_by_room


@transaction.atomic
def mark_room_attendance(
    exam_id: int,
    room_id: int,
    marks: Iterable[Dict],
    *,
    subject_id: Optional[int] = None,
    marked_by=None,
) -> List[Attendance]:
    """
    Record attendance for students seated in a room.

    ``marks`` holds ``{"student": id, "status": "PRESENT" | "ABSENT" | "LATE"}``
    entries. Earlier marks for the same students in this exam/room/subject are
    replaced.
    """
    seated = set(find_by_room(exam_id, room_id, subject_id).values_list("student_id", flat=True))
    statuses = {}
    for mark in marks:
        student_id = mark.get("student")
        status = mark.get("status", AttendanceStatus.PRESENT)
        if student_id not in seated:
            raise InvalidParameterError(f"Student {student_id} is not seated in this room.")
        if status not in AttendanceStatus.values:
            raise InvalidParameterError(f"Invalid attendance status: {status}.")
        statuses[student_id] = status

    Attendance.objects.filter(
        exam_id=exam_id,
        room_id=room_id,
        subject_id=subject_id,
        student_id__in=list(statuses),
    ).delete()
    return Attendance.objects.bulk_create(
        [
            Attendance(
                exam_id=exam_id,
                room_id=room_id,
                subject_id=subject_id,
                student_id=student_id,
                status=status,
                marked_by=marked_by,
            )
            for student_id, status in statuses.items()
        ]
    )
