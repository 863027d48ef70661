from django.conf import settings
from rest_framework import serializers

from accounts.models import AcademicYear, UserRole
from examination_system.models import (
    Attendance,
    AttendanceStatus,
    Building,
    Enrollment,
    Exam,
    Room,
    SeatingArrangement,
    Subject,
    SubjectSchedule,
)
from examination_system.services.seating_inputs import ROOM_SELECTION_ALIASES


def _seating_default(key):
    return settings.SEATING[key]


def _user_summary(user):
    if not user:
        return None
    return {
        "id": user.id,
        "name": user.display_name,
        "email": user.email,
    }


class BuildingSerializer(serializers.ModelSerializer):
    rooms_count = serializers.IntegerField(source="rooms.count", read_only=True)

    class Meta:
        model = Building
        fields = ("id", "name", "number", "address", "rooms_count", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")


class RoomSerializer(serializers.ModelSerializer):
    building_name = serializers.CharField(source="building.name", read_only=True)

    class Meta:
        model = Room
        fields = ("id", "building", "building_name", "room_number", "floor", "capacity", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_capacity(self, value):
        if value < 1:
            raise serializers.ValidationError("Capacity must be at least 1.")
        return value


class SubjectSerializer(serializers.ModelSerializer):
    class Meta:
        model = Subject
        fields = ("id", "name", "code", "description", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")


class ExamSerializer(serializers.ModelSerializer):
    subject_ids = serializers.PrimaryKeyRelatedField(
        source="subjects",
        queryset=Subject.objects.all(),
        many=True,
        required=False,
    )
    subjects = SubjectSerializer(many=True, read_only=True)
    created_by = serializers.PrimaryKeyRelatedField(read_only=True)
    enrolled_count = serializers.IntegerField(source="enrollments.count", read_only=True)

    class Meta:
        model = Exam
        fields = (
            "id",
            "title",
            "description",
            "date",
            "start_time",
            "end_time",
            "location",
            "subject_ids",
            "subjects",
            "enrolled_count",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "created_at", "updated_at")

    def validate(self, attrs):
        start = attrs.get("start_time", getattr(self.instance, "start_time", None))
        end = attrs.get("end_time", getattr(self.instance, "end_time", None))
        if start and end and end <= start:
            raise serializers.ValidationError({"end_time": "End time must be after the start time."})
        return attrs


class SubjectScheduleSerializer(serializers.ModelSerializer):
    class Meta:
        model = SubjectSchedule
        fields = ("id", "exam", "subject", "date", "start_time", "end_time")
        read_only_fields = ("id",)


class EnrollmentSerializer(serializers.ModelSerializer):
    exam_title = serializers.CharField(source="exam.title", read_only=True)
    student_name = serializers.CharField(source="student.display_name", read_only=True)
    student_email = serializers.EmailField(source="student.email", read_only=True)

    class Meta:
        model = Enrollment
        fields = ("id", "exam", "exam_title", "student", "student_name", "student_email", "enrolled_at")
        read_only_fields = ("id", "enrolled_at")

    def validate_student(self, value):
        if value.role != UserRole.STUDENT:
            raise serializers.ValidationError("Only students can be enrolled in an exam.")
        return value


class EnrollmentBatchSerializer(serializers.Serializer):
    exam = serializers.PrimaryKeyRelatedField(queryset=Exam.objects.all())
    department = serializers.CharField()
    year = serializers.ChoiceField(choices=AcademicYear.choices, required=False, allow_null=True)


class SeatingArrangementSerializer(serializers.ModelSerializer):
    exam_title = serializers.CharField(source="exam.title", read_only=True)
    subject = SubjectSerializer(read_only=True)
    student = serializers.SerializerMethodField()
    room = serializers.SerializerMethodField()
    invigilator = serializers.SerializerMethodField()
    subject_schedule = serializers.SerializerMethodField()

    class Meta:
        model = SeatingArrangement
        fields = (
            "id",
            "exam",
            "exam_title",
            "subject",
            "student",
            "room",
            "seat_number",
            "invigilator",
            "subject_schedule",
            "created_at",
            "updated_at",
        )

    def get_student(self, obj):
        return _user_summary(obj.student)

    def get_invigilator(self, obj):
        return _user_summary(obj.invigilator)

    def get_room(self, obj):
        room = obj.room
        return {
            "id": room.id,
            "room_number": room.room_number,
            "floor": room.floor,
            "capacity": room.capacity,
            "building": {"id": room.building_id, "name": room.building.name, "number": room.building.number},
        }

    def get_subject_schedule(self, obj):
        if not obj.subject_id:
            return None
        cache = self.context.setdefault("_subject_schedules", {})
        if obj.exam_id not in cache:
            cache[obj.exam_id] = {
                schedule.subject_id: schedule
                for schedule in SubjectSchedule.objects.filter(exam_id=obj.exam_id)
            }
        schedule = cache[obj.exam_id].get(obj.subject_id)
        if schedule is None:
            return None
        return {
            "date": schedule.date.isoformat(),
            "start_time": schedule.start_time.isoformat(timespec="minutes"),
            "end_time": schedule.end_time.isoformat(timespec="minutes"),
        }


class SeatingArrangementWriteSerializer(serializers.ModelSerializer):
    class Meta:
        model = SeatingArrangement
        fields = ("id", "exam", "subject", "student", "room", "seat_number", "invigilator")
        read_only_fields = ("id",)
        # Duplicate seats are reported by the view as a conflict.
        validators = []

    def validate(self, attrs):
        if self.instance is not None:
            immutable = {"exam", "student", "subject"} & set(attrs)
            if immutable:
                raise serializers.ValidationError(
                    {field: "Cannot be changed once seated." for field in sorted(immutable)}
                )
        return attrs

    def to_representation(self, instance):
        return SeatingArrangementSerializer(instance, context=self.context).data


class SeatingGenerateSerializer(serializers.Serializer):
    exam_id = serializers.IntegerField()
    subject_id = serializers.IntegerField(required=False, allow_null=True)
    generate_for_all_subjects = serializers.BooleanField(required=False, default=False)
    room_selection_mode = serializers.ChoiceField(
        choices=sorted(ROOM_SELECTION_ALIASES),
        required=False,
        default="filtered",
    )
    room_ids = serializers.ListField(child=serializers.IntegerField(), required=False, allow_empty=True)
    building_id = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    room_prefix = serializers.CharField(required=False, max_length=20, default=lambda: _seating_default("ROOM_PREFIX"))
    seat_prefix = serializers.CharField(required=False, max_length=20, default=lambda: _seating_default("SEAT_PREFIX"))
    students_per_room = serializers.IntegerField(
        required=False,
        default=lambda: _seating_default("STUDENTS_PER_ROOM"),
    )
    manual_invigilators = serializers.DictField(
        child=serializers.IntegerField(allow_null=True),
        required=False,
    )
    room_invigilators = serializers.ListField(child=serializers.DictField(), required=False)

    def validate(self, attrs):
        overrides = dict(attrs.get("manual_invigilators") or {})
        for entry in attrs.pop("room_invigilators", None) or []:
            room_id = entry.get("room_id")
            invigilator_id = entry.get("invigilator_id")
            if room_id in (None, "") or invigilator_id in (None, ""):
                continue
            overrides[str(room_id)] = invigilator_id
        attrs["manual_invigilators"] = overrides
        return attrs

    def service_kwargs(self):
        data = self.validated_data
        return {
            "exam_id": data["exam_id"],
            "subject_scope": {
                "all_subjects": data["generate_for_all_subjects"],
                "subject_id": data.get("subject_id"),
            },
            "room_selection": {
                "mode": data["room_selection_mode"],
                "room_ids": data.get("room_ids"),
                "building_id": data.get("building_id"),
            },
            "room_prefix": data["room_prefix"],
            "seat_prefix": data["seat_prefix"],
            "students_per_room": data["students_per_room"],
            "manual_invigilators": data["manual_invigilators"],
        }


class AttendanceSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source="student.display_name", read_only=True)
    marked_by = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Attendance
        fields = ("id", "exam", "subject", "student", "student_name", "room", "status", "marked_by", "marked_at")
        read_only_fields = ("id", "marked_at")


class AttendanceMarkSerializer(serializers.Serializer):
    student = serializers.IntegerField()
    status = serializers.ChoiceField(choices=AttendanceStatus.choices, default=AttendanceStatus.PRESENT)


class AttendanceBulkSerializer(serializers.Serializer):
    exam = serializers.PrimaryKeyRelatedField(queryset=Exam.objects.all())
    room = serializers.PrimaryKeyRelatedField(queryset=Room.objects.all())
    subject = serializers.PrimaryKeyRelatedField(queryset=Subject.objects.all(), required=False, allow_null=True)
    marks = AttendanceMarkSerializer(many=True, allow_empty=False)
