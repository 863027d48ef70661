from django.contrib.auth.models import AbstractUser
from django.db import models


class UserRole(models.TextChoices):
    ADMIN = "ADMIN", "Administrator"
    FACULTY = "FACULTY", "Faculty"
    STUDENT = "STUDENT", "Student"


class AcademicYear(models.TextChoices):
    FE = "FE", "First year"
    SE = "SE", "Second year"
    TE = "TE", "Third year"
    BE = "BE", "Final year"


class CustomUser(AbstractUser):
    role = models.CharField(max_length=20, choices=UserRole.choices, default=UserRole.STUDENT)
    department = models.CharField(max_length=100, blank=True, null=True)
    year = models.CharField(max_length=2, choices=AcademicYear.choices, blank=True, null=True)
    phone = models.CharField(max_length=50, blank=True, null=True)

    class Meta:
        indexes = [models.Index(fields=["role", "department", "year"], name="accounts_role_dept_year_idx")]

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username or self.email

    @property
    def is_admin_role(self) -> bool:
        return bool(self.is_staff or self.is_superuser or self.role == UserRole.ADMIN)

    def __str__(self):
        return self.email or self.username
