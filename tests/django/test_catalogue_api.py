from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import UserRole
from examination_system.models import Exam, SeatingArrangement

from .factories import make_admin, make_building, make_exam, make_room, make_subject, make_user


class CatalogueApiTests(TestCase):
    def setUp(self):
        self.admin = make_admin()
        self.student = make_user("stu")
        self.client = APIClient()

    def test_admin_creates_building_and_room(self):
        self.client.force_authenticate(self.admin)
        building = self.client.post(reverse("building-list"), {"name": "Main", "number": "B1"}, format="json")
        self.assertEqual(building.status_code, status.HTTP_201_CREATED)

        room = self.client.post(
            reverse("room-list"),
            {"building": building.data["id"], "room_number": "101", "floor": "1", "capacity": 40},
            format="json",
        )
        self.assertEqual(room.status_code, status.HTTP_201_CREATED)
        self.assertEqual(room.data["building_name"], "Main")

    def test_room_capacity_must_be_positive(self):
        self.client.force_authenticate(self.admin)
        building = make_building()
        response = self.client.post(
            reverse("room-list"),
            {"building": building.pk, "room_number": "101", "floor": "1", "capacity": 0},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_rooms_filter_by_building(self):
        main = make_building("Main", "B1")
        annex = make_building("Annex", "B2")
        make_room(main, "101")
        annex_room = make_room(annex, "A1")

        self.client.force_authenticate(self.student)
        response = self.client.get(reverse("room-list"), {"building": annex.pk})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in response.data], [annex_room.pk])

    def test_invalid_building_filter_returns_400(self):
        self.client.force_authenticate(self.student)
        response = self.client.get(reverse("room-list"), {"building": "x"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_building_all_lists_every_room(self):
        make_room(make_building("Main", "B1"), "101")
        make_room(make_building("Annex", "B2"), "A1")
        self.client.force_authenticate(self.student)

        response = self.client.get(reverse("room-list"), {"building": "all"})
        self.assertEqual(len(response.data), 2)

    def test_invalid_schedule_exam_filter_returns_400(self):
        self.client.force_authenticate(self.student)
        response = self.client.get(reverse("subject-schedule-list"), {"exam": "x"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_deleting_each_subject_of_a_seated_exam_drops_its_seats(self):
        maths = make_subject("MAT")
        physics = make_subject("PHY")
        exam = make_exam(subjects=[maths, physics])
        room = make_room(make_building(), "101")
        for subject in (maths, physics):
            SeatingArrangement.objects.create(
                exam=exam, subject=subject, student=self.student, room=room, seat_number="S1"
            )
        self.client.force_authenticate(self.admin)

        for subject in (maths, physics):
            response = self.client.delete(reverse("subject-detail", args=[subject.pk]))
            self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        self.assertFalse(SeatingArrangement.objects.filter(exam=exam).exists())

    def test_student_cannot_create_subject(self):
        self.client.force_authenticate(self.student)
        response = self.client.post(reverse("subject-list"), {"name": "Maths", "code": "MAT"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_exam_created_with_subject_ids(self):
        maths = make_subject("MAT")
        physics = make_subject("PHY")
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            reverse("exam-list"),
            {
                "title": "Finals",
                "date": "2026-06-01",
                "start_time": "09:00",
                "end_time": "12:00",
                "subject_ids": [maths.pk, physics.pk],
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        exam = Exam.objects.get(pk=response.data["id"])
        self.assertEqual(exam.created_by, self.admin)
        self.assertEqual(set(exam.subjects.values_list("pk", flat=True)), {maths.pk, physics.pk})
        self.assertEqual(sorted(response.data["subject_ids"]), sorted([maths.pk, physics.pk]))

    def test_exam_end_time_must_follow_start(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            reverse("exam-list"),
            {"title": "Finals", "date": "2026-06-01", "start_time": "12:00", "end_time": "09:00"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("end_time", response.data)


class UsersApiTests(TestCase):
    def setUp(self):
        self.admin = make_admin()
        self.faculty = make_user("prof", role=UserRole.FACULTY, department="Computer")
        self.student = make_user("stu")
        self.client = APIClient()

    def test_role_filter_lists_invigilator_pool(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get(reverse("user-list"), {"role": "faculty"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in response.data], [self.faculty.pk])

    def test_unknown_role_returns_empty_list(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get(reverse("user-list"), {"role": "janitor"})
        self.assertEqual(response.data, [])

    def test_non_admin_cannot_list_users(self):
        self.client.force_authenticate(self.faculty)
        response = self.client.get(reverse("user-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_me_returns_profile(self):
        self.client.force_authenticate(self.faculty)
        response = self.client.get(reverse("api-auth-me"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["role"], UserRole.FACULTY)
        self.assertEqual(response.data["department"], "Computer")

    def test_me_patch_updates_phone(self):
        self.client.force_authenticate(self.student)
        response = self.client.patch(reverse("api-auth-me"), {"phone": " 555-0101 "}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.student.refresh_from_db()
        self.assertEqual(self.student.phone, "555-0101")

    def test_me_patch_rejects_taken_email(self):
        self.client.force_authenticate(self.student)
        response = self.client.patch(reverse("api-auth-me"), {"email": "PROF@example.com"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_token_login_accepts_email(self):
        response = self.client.post(
            reverse("api-login"),
            {"username": "stu@example.com", "password": "secret"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["token"])
        self.assertEqual(response.data["user"]["id"], self.student.pk)

    def test_token_login_rejects_bad_password(self):
        response = self.client.post(
            reverse("api-login"),
            {"username": "stu", "password": "wrong"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class HealthzTests(TestCase):
    def test_healthz_reports_database_ok(self):
        response = self.client.get(reverse("healthz"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok", "services": {"database": {"status": "ok"}}})
