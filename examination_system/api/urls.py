from django.urls import path
from rest_framework.routers import DefaultRouter

from accounts.api import CurrentUserView, ObtainAuthTokenView, UserViewSet
from .views import (
    AttendanceViewSet,
    BuildingViewSet,
    EnrollmentViewSet,
    ExamViewSet,
    RoomViewSet,
    SeatingArrangementViewSet,
    SubjectScheduleViewSet,
    SubjectViewSet,
)

router = DefaultRouter()
router.register("buildings", BuildingViewSet, basename="building")
router.register("rooms", RoomViewSet, basename="room")
router.register("subjects", SubjectViewSet, basename="subject")
router.register("exams", ExamViewSet, basename="exam")
router.register("subject-schedules", SubjectScheduleViewSet, basename="subject-schedule")
router.register("enrollments", EnrollmentViewSet, basename="enrollment")
router.register("seating", SeatingArrangementViewSet, basename="seating")
router.register("attendance", AttendanceViewSet, basename="attendance")
router.register("users", UserViewSet, basename="user")

urlpatterns = [
    path("auth/token/login/", ObtainAuthTokenView.as_view(), name="api-login"),
    path("auth/me/", CurrentUserView.as_view(), name="api-auth-me"),
]

urlpatterns += router.urls
