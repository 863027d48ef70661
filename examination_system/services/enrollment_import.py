import logging
from typing import Any, Dict, Iterable, Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.db.models.functions import Lower

from accounts.models import UserRole
from examination_system.models import Enrollment, Exam

logger = logging.getLogger(__name__)


def _base_summary(total_rows: int) -> Dict[str, Any]:
    return {
        "created": 0,
        "already_enrolled": 0,
        "unmatched": [],
        "total_rows": total_rows,
    }


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _students_by_identifier(rows):
    emails = {_clean(row.get("email")).lower() for row in rows} - {""}
    usernames = {_clean(row.get("username")) for row in rows} - {""}
    User = get_user_model()
    students = (
        User.objects.filter(role=UserRole.STUDENT)
        .annotate(email_lower=Lower("email"))
        .filter(Q(email_lower__in=emails) | Q(username__in=usernames))
    )
    by_email = {}
    by_username = {}
    for student in students:
        if student.email:
            by_email[student.email.lower()] = student
        by_username[student.username] = student
    return by_email, by_username


@transaction.atomic
def ingest_enrollment_rows(exam: Exam, rows: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Enroll the students listed in parsed spreadsheet rows.

    Rows are matched to student accounts by email first, then username. Rows
    that match nobody are reported back in ``unmatched``.
    """
    rows = list(rows)
    summary = _base_summary(len(rows))
    by_email, by_username = _students_by_identifier(rows)
    existing = set(Enrollment.objects.filter(exam=exam).values_list("student_id", flat=True))

    to_create = []
    for row in rows:
        email = _clean(row.get("email")).lower()
        username = _clean(row.get("username"))
        student = by_email.get(email) if email else None
        if student is None and username:
            student = by_username.get(username)
        if student is None:
            summary["unmatched"].append(email or username or _clean(row.get("name")))
            continue
        if student.pk in existing:
            summary["already_enrolled"] += 1
            continue
        existing.add(student.pk)
        to_create.append(Enrollment(exam=exam, student=student))

    Enrollment.objects.bulk_create(to_create)
    summary["created"] = len(to_create)
    logger.info(
        "Imported enrollments for exam %s: %s created, %s already enrolled, %s unmatched.",
        exam.pk,
        summary["created"],
        summary["already_enrolled"],
        len(summary["unmatched"]),
    )
    return summary


@transaction.atomic
def batch_enroll(exam: Exam, department: str, year: Optional[str]) -> Dict[str, int]:
    """Enroll every student of a department (and academic year) who is not enrolled yet."""
    User = get_user_model()
    students = User.objects.filter(role=UserRole.STUDENT, department=department)
    if year:
        students = students.filter(year=year)
    student_ids = list(students.order_by("pk").values_list("pk", flat=True))

    existing = set(
        Enrollment.objects.filter(exam=exam, student_id__in=student_ids).values_list("student_id", flat=True)
    )
    new_rows = [Enrollment(exam=exam, student_id=pk) for pk in student_ids if pk not in existing]
    Enrollment.objects.bulk_create(new_rows)

    return {
        "enrolled": len(new_rows),
        "total": len(student_ids),
        "already_enrolled": len(existing),
    }
