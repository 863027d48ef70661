from django.contrib import admin

from .models import (
    Attendance,
    Building,
    Enrollment,
    Exam,
    ExamSubject,
    Room,
    SeatingArrangement,
    Subject,
    SubjectSchedule,
)


class RoomInline(admin.TabularInline):
    model = Room
    extra = 0


class ExamSubjectInline(admin.TabularInline):
    model = ExamSubject
    extra = 0


class SubjectScheduleInline(admin.TabularInline):
    model = SubjectSchedule
    extra = 0


@admin.register(Building)
class BuildingAdmin(admin.ModelAdmin):
    list_display = ("name", "number", "address")
    search_fields = ("name", "number")
    inlines = [RoomInline]


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("room_number", "building", "floor", "capacity")
    list_filter = ("building",)
    search_fields = ("room_number", "building__name")


@admin.register(Subject)
class SubjectAdmin(admin.ModelAdmin):
    list_display = ("code", "name")
    search_fields = ("code", "name")
    ordering = ("code",)


@admin.register(Exam)
class ExamAdmin(admin.ModelAdmin):
    list_display = ("title", "date", "start_time", "end_time", "location")
    search_fields = ("title", "location")
    list_filter = ("date",)
    inlines = [ExamSubjectInline, SubjectScheduleInline]


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ("exam", "student", "enrolled_at")
    list_filter = ("exam",)
    search_fields = ("student__email", "student__username", "exam__title")
    raw_id_fields = ("student",)


@admin.register(SeatingArrangement)
class SeatingArrangementAdmin(admin.ModelAdmin):
    list_display = ("exam", "subject", "student", "room", "seat_number", "invigilator")
    list_filter = ("exam", "room__building")
    search_fields = ("student__email", "student__username", "seat_number", "room__room_number")
    raw_id_fields = ("student", "invigilator")


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ("exam", "student", "room", "status", "marked_by", "marked_at")
    list_filter = ("status", "exam")
    search_fields = ("student__email", "student__username")
    raw_id_fields = ("student", "marked_by")
