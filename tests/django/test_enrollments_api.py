from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import AcademicYear, UserRole
from examination_system.models import Enrollment

from .factories import enroll, make_admin, make_exam, make_user


class EnrollmentApiTests(TestCase):
    def setUp(self):
        self.admin = make_admin()
        self.exam = make_exam()
        self.client = APIClient()
        self.client.force_authenticate(self.admin)

    def test_admin_can_enroll_student(self):
        student = make_user("stu")
        response = self.client.post(
            reverse("enrollment-list"),
            {"exam": self.exam.pk, "student": student.pk},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Enrollment.objects.filter(exam=self.exam, student=student).exists())

    def test_duplicate_enrollment_is_rejected(self):
        student = make_user("stu")
        enroll(self.exam, [student])
        response = self.client.post(
            reverse("enrollment-list"),
            {"exam": self.exam.pk, "student": student.pk},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_faculty_cannot_be_enrolled(self):
        faculty = make_user("prof", role=UserRole.FACULTY)
        response = self.client.post(
            reverse("enrollment-list"),
            {"exam": self.exam.pk, "student": faculty.pk},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("student", response.data)

    def test_invalid_exam_filter_returns_400(self):
        response = self.client.get(reverse("enrollment-list"), {"exam": "abc"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Invalid exam.")

    def test_student_lists_only_own_enrollments(self):
        mine = make_user("mine")
        other = make_user("other")
        enroll(self.exam, [mine, other])

        self.client.force_authenticate(mine)
        response = self.client.get(reverse("enrollment-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["student"] for row in response.data], [mine.pk])

    def test_batch_enrolls_department_and_year(self):
        already = make_user("cs1", department="Computer", year=AcademicYear.TE)
        make_user("cs2", department="Computer", year=AcademicYear.TE)
        make_user("cs3", department="Computer", year=AcademicYear.SE)
        make_user("me1", department="Mechanical", year=AcademicYear.TE)
        enroll(self.exam, [already])

        response = self.client.post(
            reverse("enrollment-batch"),
            {"exam": self.exam.pk, "department": "Computer", "year": "TE"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"enrolled": 1, "total": 2, "already_enrolled": 1})
        self.assertEqual(Enrollment.objects.filter(exam=self.exam).count(), 2)

    def test_batch_rejects_unknown_year(self):
        response = self.client.post(
            reverse("enrollment-batch"),
            {"exam": self.exam.pk, "department": "Computer", "year": "ZZ"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_upload_csv_matches_email_then_username(self):
        by_email = make_user("alice", email="Alice@Example.com")
        by_username = make_user("b123", email="")
        already = make_user("carol")
        enroll(self.exam, [already])
        sheet = (
            "Student Email,Roll No,Student Name\n"
            "alice@example.com,,Alice\n"
            ",b123,Bob\n"
            "carol@example.com,,Carol\n"
            "ghost@example.com,,Ghost\n"
        )
        upload = SimpleUploadedFile("students.csv", sheet.encode(), content_type="text/csv")

        response = self.client.post(
            reverse("enrollment-upload"),
            {"exam": self.exam.pk, "file": upload},
            format="multipart",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ingest = response.data["ingest"]
        self.assertEqual(ingest["created"], 2)
        self.assertEqual(ingest["already_enrolled"], 1)
        self.assertEqual(ingest["unmatched"], ["ghost@example.com"])
        self.assertEqual(
            set(Enrollment.objects.filter(exam=self.exam).values_list("student_id", flat=True)),
            {by_email.pk, by_username.pk, already.pk},
        )

    def test_upload_without_file_returns_400(self):
        response = self.client.post(reverse("enrollment-upload"), {"exam": self.exam.pk}, format="multipart")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "No file uploaded.")

    def test_upload_without_identifier_column_returns_400(self):
        upload = SimpleUploadedFile("students.csv", b"Name,Branch\nAlice,Computer\n", content_type="text/csv")
        response = self.client.post(
            reverse("enrollment-upload"),
            {"exam": self.exam.pk, "file": upload},
            format="multipart",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Missing identifier column", response.data["message"])

    def test_upload_requires_valid_exam(self):
        upload = SimpleUploadedFile("students.csv", b"email\na@example.com\n", content_type="text/csv")
        response = self.client.post(
            reverse("enrollment-upload"),
            {"exam": "999999", "file": upload},
            format="multipart",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_admin_cannot_batch_enroll(self):
        self.client.force_authenticate(make_user("stu"))
        response = self.client.post(
            reverse("enrollment-batch"),
            {"exam": self.exam.pk, "department": "Computer"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
