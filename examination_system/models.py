from django.conf import settings
from django.db import models
from django.db.models import Q


# ---------- ENUM TYPES ----------

class AttendanceStatus(models.TextChoices):
    PRESENT = "PRESENT", "Present"
    ABSENT = "ABSENT", "Absent"
    LATE = "LATE", "Late"


# ---------- CATALOGUE ----------


class Building(models.Model):
    name = models.CharField(max_length=255)
    number = models.CharField(max_length=50)
    address = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["number", "name"]

    def __str__(self):
        return f"{self.name} ({self.number})"


class Room(models.Model):
    building = models.ForeignKey(Building, on_delete=models.CASCADE, related_name="rooms")
    room_number = models.CharField(max_length=50)
    floor = models.CharField(max_length=20)
    capacity = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["room_number", "pk"]

    def __str__(self):
        return f"{self.room_number} ({self.building.name})"


class Subject(models.Model):
    name = models.CharField(max_length=255)
    code = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.name} ({self.code})"


# ---------- EXAMS ----------


class Exam(models.Model):
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    location = models.CharField(max_length=255, blank=True, null=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_exams",
    )
    subjects = models.ManyToManyField(Subject, through="ExamSubject", related_name="exams", blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "start_time"]

    def __str__(self):
        return f"{self.title} on {self.date}"


class ExamSubject(models.Model):
    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name="exam_subjects")
    subject = models.ForeignKey(Subject, on_delete=models.CASCADE, related_name="exam_subjects")

    class Meta:
        unique_together = ("exam", "subject")

    def __str__(self):
        return f"{self.exam} - {self.subject}"


class SubjectSchedule(models.Model):
    """Subject-specific date and time slot inside a multi-subject exam."""

    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name="subject_schedules")
    subject = models.ForeignKey(Subject, on_delete=models.CASCADE, related_name="schedules")
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("exam", "subject")
        ordering = ["date", "start_time"]

    def __str__(self):
        return f"{self.subject} for {self.exam} on {self.date}"


class Enrollment(models.Model):
    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name="enrollments")
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="enrollments",
    )
    enrolled_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("exam", "student")
        ordering = ["enrolled_at", "pk"]

    def __str__(self):
        return f"{self.student} - {self.exam}"


# ---------- SEATING ----------


class SeatingArrangement(models.Model):
    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name="seating_arrangements")
    subject = models.ForeignKey(
        Subject,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="seating_arrangements",
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="seating_arrangements",
    )
    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name="seating_arrangements")
    seat_number = models.CharField(max_length=50)
    invigilator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invigilated_seats",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["exam", "room", "pk"]
        constraints = [
            models.UniqueConstraint(
                fields=["exam", "student", "subject"],
                name="uq_seating_exam_student_subject",
            ),
            # NULL subjects never collide under the constraint above.
            models.UniqueConstraint(
                fields=["exam", "student"],
                condition=Q(subject__isnull=True),
                name="uq_seating_exam_student_no_subject",
            ),
        ]
        indexes = [models.Index(fields=["exam", "room"], name="seating_exam_room_idx")]

    def __str__(self):
        return f"{self.student} → {self.room} seat {self.seat_number}"


class Attendance(models.Model):
    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name="attendance_records")
    subject = models.ForeignKey(
        Subject,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="attendance_records",
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="attendance_records",
    )
    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name="attendance_records")
    status = models.CharField(max_length=10, choices=AttendanceStatus.choices, default=AttendanceStatus.PRESENT)
    marked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="attendance_marked",
    )
    marked_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-marked_at"]
        verbose_name_plural = "Attendance"

    def __str__(self):
        return f"{self.student} {self.get_status_display()} for {self.exam}"
