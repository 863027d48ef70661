from django.db import IntegrityError, transaction
from django.test import TestCase

from accounts.models import UserRole
from examination_system.models import Attendance, SeatingArrangement

from .factories import make_building, make_exam, make_room, make_subject, make_user


class ModelStringTests(TestCase):
    def test_str_helpers(self):
        building = make_building("Main", "B1")
        room = make_room(building, "101")
        subject = make_subject("MAT", "Mathematics")
        exam = make_exam("Algorithms")
        student = make_user("alice")
        seat = SeatingArrangement.objects.create(exam=exam, student=student, room=room, seat_number="S4")
        attendance = Attendance.objects.create(exam=exam, student=student, room=room)

        self.assertEqual(str(building), "Main (B1)")
        self.assertEqual(str(room), "101 (Main)")
        self.assertEqual(str(subject), "Mathematics (MAT)")
        self.assertIn("Algorithms", str(exam))
        self.assertEqual(str(student), "alice@example.com")
        self.assertIn("seat S4", str(seat))
        self.assertIn("Present", str(attendance))

    def test_admin_role_flag(self):
        self.assertTrue(make_user("boss", role=UserRole.ADMIN).is_admin_role)
        self.assertTrue(make_user("staff", is_staff=True).is_admin_role)
        self.assertFalse(make_user("prof", role=UserRole.FACULTY).is_admin_role)


class SeatingConstraintTests(TestCase):
    def setUp(self):
        self.room = make_room(make_building(), "101")
        self.exam = make_exam()
        self.student = make_user("alice")

    def test_student_seated_once_without_subject(self):
        SeatingArrangement.objects.create(exam=self.exam, student=self.student, room=self.room, seat_number="S1")
        with self.assertRaises(IntegrityError), transaction.atomic():
            SeatingArrangement.objects.create(exam=self.exam, student=self.student, room=self.room, seat_number="S2")

    def test_student_seated_once_per_subject(self):
        maths = make_subject("MAT")
        physics = make_subject("PHY")
        SeatingArrangement.objects.create(
            exam=self.exam, subject=maths, student=self.student, room=self.room, seat_number="S1"
        )
        SeatingArrangement.objects.create(
            exam=self.exam, subject=physics, student=self.student, room=self.room, seat_number="S1"
        )
        with self.assertRaises(IntegrityError), transaction.atomic():
            SeatingArrangement.objects.create(
                exam=self.exam, subject=maths, student=self.student, room=self.room, seat_number="S2"
            )
