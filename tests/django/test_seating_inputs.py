from django.test import TestCase

from accounts.models import UserRole
from examination_system.services import seating_inputs
from examination_system.services.exceptions import (
    InvalidParameterError,
    NoRoomsAvailableError,
    NotFoundError,
)

from .factories import enroll, make_building, make_exam, make_room, make_subject, make_user


class ResolveEnrollmentsTests(TestCase):
    def test_returns_students_in_enrollment_order(self):
        exam = make_exam()
        students = [make_user(f"s{i}") for i in range(3)]
        enroll(exam, reversed(students))

        result = seating_inputs.resolve_enrollments(exam.pk)
        self.assertEqual(result, [s.pk for s in reversed(students)])

    def test_no_enrollments_raises_not_found(self):
        exam = make_exam()
        with self.assertRaisesMessage(NotFoundError, "No students enrolled in this exam."):
            seating_inputs.resolve_enrollments(exam.pk)

    def test_unknown_exam_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            seating_inputs.resolve_enrollments(99999)


class ResolveRoomsTests(TestCase):
    def setUp(self):
        self.main = make_building("Main", "B1")
        self.annex = make_building("Annex", "B2")
        self.r201 = make_room(self.main, "201")
        self.r101 = make_room(self.main, "101")
        self.a1 = make_room(self.annex, "A1")

    def test_filtered_returns_all_rooms_ordered_by_number(self):
        rooms = seating_inputs.resolve_rooms("filtered")
        self.assertEqual([r.room_number for r in rooms], ["101", "201", "A1"])

    def test_filtered_by_building(self):
        rooms = seating_inputs.resolve_rooms("filtered", building_id=str(self.main.pk))
        self.assertEqual([r.room_id for r in rooms], [self.r101.pk, self.r201.pk])

    def test_all_building_means_no_filter(self):
        rooms = seating_inputs.resolve_rooms("auto", building_id="all")
        self.assertEqual(len(rooms), 3)

    def test_filtered_with_no_matching_rooms_raises(self):
        empty = make_building("Empty", "B9")
        with self.assertRaises(NoRoomsAvailableError):
            seating_inputs.resolve_rooms("filtered", building_id=empty.pk)

    def test_explicit_returns_listed_rooms_by_number(self):
        rooms = seating_inputs.resolve_rooms("explicit", room_ids=[self.a1.pk, self.r201.pk])
        self.assertEqual([r.room_id for r in rooms], [self.r201.pk, self.a1.pk])

    def test_manual_alias_maps_to_explicit(self):
        rooms = seating_inputs.resolve_rooms("manual", room_ids=[self.r101.pk])
        self.assertEqual([r.room_id for r in rooms], [self.r101.pk])

    def test_explicit_with_unknown_room_raises_not_found(self):
        with self.assertRaisesMessage(NotFoundError, "Rooms not found: 424242."):
            seating_inputs.resolve_rooms("explicit", room_ids=[self.r101.pk, 424242])

    def test_explicit_without_ids_raises(self):
        with self.assertRaises(InvalidParameterError):
            seating_inputs.resolve_rooms("explicit", room_ids=[])

    def test_unknown_mode_raises(self):
        with self.assertRaises(InvalidParameterError):
            seating_inputs.resolve_rooms("random")


class ResolveSubjectScopeTests(TestCase):
    def test_all_subjects_ordered_by_code(self):
        physics = make_subject("PHY")
        chemistry = make_subject("CHE")
        exam = make_exam(subjects=[physics, chemistry])

        self.assertEqual(
            seating_inputs.resolve_subject_scope(exam.pk, True),
            [chemistry.pk, physics.pk],
        )

    def test_all_subjects_with_none_linked_is_empty(self):
        exam = make_exam()
        self.assertEqual(seating_inputs.resolve_subject_scope(exam.pk, True), [])

    def test_single_subject(self):
        exam = make_exam()
        maths = make_subject("MAT")
        self.assertEqual(seating_inputs.resolve_subject_scope(exam.pk, False, maths.pk), [maths.pk])

    def test_no_subject_means_unscoped(self):
        exam = make_exam()
        self.assertEqual(seating_inputs.resolve_subject_scope(exam.pk, False, None), [None])

    def test_unknown_subject_raises(self):
        exam = make_exam()
        with self.assertRaises(NotFoundError):
            seating_inputs.resolve_subject_scope(exam.pk, False, 31337)


class ResolveInvigilatorsTests(TestCase):
    def test_pool_contains_active_faculty_only(self):
        first = make_user("f1", role=UserRole.FACULTY)
        second = make_user("f2", role=UserRole.FACULTY)
        make_user("f3", role=UserRole.FACULTY, is_active=False)
        make_user("student")

        self.assertEqual(seating_inputs.resolve_invigilator_pool(), [first.pk, second.pk])

    def test_manual_overrides_are_coerced_and_blank_entries_skipped(self):
        faculty = make_user("f1", role=UserRole.FACULTY)

        overrides = seating_inputs.resolve_manual_invigilators({"5": str(faculty.pk), "6": None, "7": ""})
        self.assertEqual(overrides, {5: faculty.pk})

    def test_unknown_manual_invigilator_raises(self):
        with self.assertRaises(NotFoundError):
            seating_inputs.resolve_manual_invigilators({1: 987654})

    def test_manual_invigilator_must_be_active_faculty(self):
        student = make_user("stu")
        retired = make_user("f9", role=UserRole.FACULTY, is_active=False)
        for user in (student, retired):
            with self.subTest(user=user.username), self.assertRaises(NotFoundError):
                seating_inputs.resolve_manual_invigilators({1: user.pk})

    def test_invalid_room_key_raises(self):
        faculty = make_user("f1", role=UserRole.FACULTY)
        with self.assertRaises(InvalidParameterError):
            seating_inputs.resolve_manual_invigilators({"room-a": faculty.pk})
