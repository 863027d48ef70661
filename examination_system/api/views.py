import csv
import logging
from io import StringIO

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.http import HttpResponse
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ParseError
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response

from accounts.api import IsAdminRole
from accounts.models import UserRole
from examination_system.models import (
    Attendance,
    Building,
    Enrollment,
    Exam,
    Room,
    SeatingArrangement,
    Subject,
    SubjectSchedule,
)
from examination_system.services import (
    SeatingError,
    batch_enroll,
    generate_seating,
    ingest_enrollment_rows,
)
from examination_system.services.attendance import mark_room_attendance
from examination_system.services.seating_store import find_by_room
from examination_system.utils.enrollment_parser import parse_enrollment_file
from .serializers import (
    AttendanceBulkSerializer,
    AttendanceSerializer,
    BuildingSerializer,
    EnrollmentBatchSerializer,
    EnrollmentSerializer,
    ExamSerializer,
    RoomSerializer,
    SeatingArrangementSerializer,
    SeatingArrangementWriteSerializer,
    SeatingGenerateSerializer,
    SubjectScheduleSerializer,
    SubjectSerializer,
)

logger = logging.getLogger(__name__)

SAFE_ACTIONS = ("list", "retrieve")


def _error_response(exc: SeatingError):
    return Response({"detail": exc.message}, status=exc.status_code)


def _int_param(request, name):
    """Read an integer query parameter; returns (value, error_response)."""
    raw = request.query_params.get(name)
    if raw in (None, ""):
        return None, None
    try:
        return int(raw), None
    except (TypeError, ValueError):
        return None, Response({"detail": f"Invalid {name}."}, status=status.HTTP_400_BAD_REQUEST)


def _int_query(request, name, skip=("",)):
    """Integer filter read from the query string; malformed values raise ParseError (400)."""
    raw = request.query_params.get(name)
    if raw is None or raw in skip:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ParseError(f"Invalid {name}.")


class IsAdminOrFaculty(permissions.BasePermission):
    """
    Allow access to admins and faculty members (the invigilators).
    """

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        return user.is_admin_role or user.role == UserRole.FACULTY


class AdminWriteMixin:
    """Reads for any signed-in user, writes for admins only."""

    def get_permissions(self):
        if self.action in SAFE_ACTIONS:
            return [permissions.IsAuthenticated()]
        return [IsAdminRole()]


class SeatingPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = "page_size"
    max_page_size = settings.SEATING["MAX_PAGE_SIZE"]


class BuildingViewSet(AdminWriteMixin, viewsets.ModelViewSet):
    queryset = Building.objects.all()
    serializer_class = BuildingSerializer
    throttle_classes: list = []


class RoomViewSet(AdminWriteMixin, viewsets.ModelViewSet):
    serializer_class = RoomSerializer
    throttle_classes: list = []

    def get_queryset(self):
        queryset = Room.objects.select_related("building")
        building = _int_query(self.request, "building", skip=("", "all"))
        if building is not None:
            queryset = queryset.filter(building_id=building)
        return queryset


class SubjectViewSet(AdminWriteMixin, viewsets.ModelViewSet):
    queryset = Subject.objects.all()
    serializer_class = SubjectSerializer
    throttle_classes: list = []


class ExamViewSet(AdminWriteMixin, viewsets.ModelViewSet):
    queryset = Exam.objects.all().prefetch_related("subjects")
    serializer_class = ExamSerializer
    throttle_classes: list = []

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)


class SubjectScheduleViewSet(AdminWriteMixin, viewsets.ModelViewSet):
    serializer_class = SubjectScheduleSerializer
    throttle_classes: list = []

    def get_queryset(self):
        queryset = SubjectSchedule.objects.all()
        exam = _int_query(self.request, "exam")
        if exam is not None:
            queryset = queryset.filter(exam_id=exam)
        return queryset


class EnrollmentViewSet(
    mixins.ListModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = EnrollmentSerializer
    throttle_classes: list = []

    def get_permissions(self):
        if self.action == "list":
            return [permissions.IsAuthenticated()]
        return [IsAdminRole()]

    def get_queryset(self):
        user = self.request.user
        queryset = Enrollment.objects.select_related("exam", "student")
        if not user.is_admin_role:
            queryset = queryset.filter(student=user)
        exam = _int_query(self.request, "exam")
        if exam is not None:
            queryset = queryset.filter(exam_id=exam)
        return queryset

    @action(detail=False, methods=["post"], url_path="batch")
    def batch(self, request):
        """
        Enroll every student of a department (optionally one academic year).
        Expects JSON body: {"exam": 1, "department": "Computer", "year": "TE"}
        """
        serializer = EnrollmentBatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        summary = batch_enroll(data["exam"], data["department"], data.get("year"))
        return Response(summary, status=status.HTTP_200_OK)

    @action(detail=False, methods=["post"], url_path="upload", parser_classes=[MultiPartParser, FormParser])
    def upload(self, request):
        """Enroll the students listed in an uploaded CSV or Excel sheet."""
        upload = request.FILES.get("file")
        if not upload:
            return Response(
                {"status": "error", "message": "No file uploaded."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        exam_id = request.data.get("exam")
        exam = Exam.objects.filter(pk=exam_id).first() if str(exam_id or "").isdigit() else None
        if exam is None:
            return Response(
                {"status": "error", "message": "A valid exam is required."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        if hasattr(upload, "seek"):
            upload.seek(0)
        result = parse_enrollment_file(upload)
        if result.get("status") != "ok":
            return Response(result, status=status.HTTP_400_BAD_REQUEST)

        result["ingest"] = ingest_enrollment_rows(exam, result.pop("rows"))
        return Response(result, status=status.HTTP_200_OK)


class SeatingArrangementViewSet(viewsets.ModelViewSet):
    pagination_class = SeatingPagination
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_permissions(self):
        if self.action in SAFE_ACTIONS + ("by_room",):
            return [permissions.IsAuthenticated()]
        return [IsAdminRole()]

    def get_throttles(self):
        if self.action == "generate":
            return []
        return super().get_throttles()

    def get_serializer_class(self):
        if self.action in ("create", "partial_update"):
            return SeatingArrangementWriteSerializer
        return SeatingArrangementSerializer

    def get_queryset(self):
        user = self.request.user
        queryset = SeatingArrangement.objects.select_related(
            "exam", "subject", "student", "room__building", "invigilator"
        )
        if not user.is_admin_role:
            if user.role == UserRole.FACULTY:
                queryset = queryset.filter(invigilator=user)
            else:
                queryset = queryset.filter(student=user)

        exam = _int_query(self.request, "exam")
        if exam is not None:
            queryset = queryset.filter(exam_id=exam)
        subject = _int_query(self.request, "subject")
        if subject is not None:
            queryset = queryset.filter(subject_id=subject)
        building = _int_query(self.request, "building", skip=("", "all"))
        if building is not None:
            queryset = queryset.filter(room__building_id=building)
        search = (self.request.query_params.get("search") or "").strip()
        if search:
            queryset = queryset.filter(
                Q(student__first_name__icontains=search)
                | Q(student__last_name__icontains=search)
                | Q(student__username__icontains=search)
                | Q(student__email__icontains=search)
                | Q(room__room_number__icontains=search)
                | Q(seat_number__icontains=search)
            )
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        duplicate = SeatingArrangement.objects.filter(
            exam=data["exam"],
            student=data["student"],
            subject=data.get("subject"),
        )
        if duplicate.exists():
            return Response(
                {"detail": "Seating arrangement already exists for this student."},
                status=status.HTTP_409_CONFLICT,
            )
        try:
            with transaction.atomic():
                serializer.save()
        except IntegrityError:
            return Response(
                {"detail": "Seating arrangement already exists for this student."},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"], url_path="generate")
    def generate(self, request):
        """
        Replace the whole seating plan of an exam with a freshly generated one.
        """
        serializer = SeatingGenerateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        kwargs = serializer.service_kwargs()
        try:
            result = generate_seating(**kwargs)
        except SeatingError as exc:
            logger.info("Seating generation for exam %s rejected: %s", kwargs["exam_id"], exc.message)
            return _error_response(exc)

        arrangements = self.get_queryset().filter(exam_id=kwargs["exam_id"]).order_by("room", "seat_number", "pk")
        return Response(
            {
                "detail": f"Generated {result['count']} seating arrangements.",
                "count": result["count"],
                "rooms_used": result["rooms_used"],
                "over_capacity_rooms": result["over_capacity_rooms"],
                "arrangements": SeatingArrangementSerializer(arrangements, many=True).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["get"], url_path="by-room")
    def by_room(self, request):
        exam_id, error = _int_param(request, "exam")
        if error:
            return error
        room_id, error = _int_param(request, "room")
        if error:
            return error
        if exam_id is None or room_id is None:
            return Response({"detail": "exam and room are required."}, status=status.HTTP_400_BAD_REQUEST)
        subject_id, error = _int_param(request, "subject")
        if error:
            return error

        rows = find_by_room(exam_id, room_id, subject_id)
        user = request.user
        if not user.is_admin_role:
            if user.role == UserRole.FACULTY:
                rows = rows.filter(invigilator=user)
            else:
                rows = rows.filter(student=user)
        return Response(SeatingArrangementSerializer(rows.select_related("invigilator", "exam"), many=True).data)

    @action(detail=False, methods=["get"], url_path="export")
    def export(self, request):
        """
        Admin CSV export of the seating plan of one exam.
        """
        exam_id, error = _int_param(request, "exam")
        if error:
            return error
        if exam_id is None:
            return Response({"detail": "exam is required."}, status=status.HTTP_400_BAD_REQUEST)
        exam = Exam.objects.filter(pk=exam_id).first()
        if exam is None:
            return Response({"detail": f"Exam {exam_id} not found."}, status=status.HTTP_404_NOT_FOUND)

        rows = (
            SeatingArrangement.objects.filter(exam=exam)
            .select_related("subject", "student", "room__building", "invigilator")
            .order_by("room__building__number", "room__room_number", "seat_number", "pk")
        )
        buffer = StringIO()
        writer = csv.writer(buffer)
        writer.writerow(
            [
                "Student Name",
                "Email",
                "Subject Code",
                "Building",
                "Room",
                "Seat",
                "Invigilator",
            ]
        )
        for row in rows:
            writer.writerow(
                [
                    row.student.display_name,
                    row.student.email,
                    row.subject.code if row.subject else "",
                    row.room.building.name,
                    row.room.room_number,
                    row.seat_number,
                    row.invigilator.display_name if row.invigilator else "",
                ]
            )

        response = HttpResponse(buffer.getvalue(), content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="seating_exam_{exam.pk}.csv"'
        return response


class AttendanceViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    serializer_class = AttendanceSerializer
    throttle_classes: list = []

    def get_permissions(self):
        if self.action == "bulk":
            return [IsAdminOrFaculty()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        user = self.request.user
        queryset = Attendance.objects.select_related("student")
        if not (user.is_admin_role or user.role == UserRole.FACULTY):
            queryset = queryset.filter(student=user)
        for name in ("exam", "room", "subject"):
            value = _int_query(self.request, name)
            if value is not None:
                queryset = queryset.filter(**{f"{name}_id": value})
        return queryset

    @action(detail=False, methods=["post"], url_path="bulk")
    def bulk(self, request):
        """
        Mark attendance for the students seated in one room.
        Expects JSON body: {"exam": 1, "room": 2, "marks": [{"student": 3, "status": "PRESENT"}]}
        """
        serializer = AttendanceBulkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        subject = data.get("subject")
        try:
            records = mark_room_attendance(
                data["exam"].pk,
                data["room"].pk,
                data["marks"],
                subject_id=subject.pk if subject else None,
                marked_by=request.user,
            )
        except SeatingError as exc:
            return _error_response(exc)
        return Response(
            {"marked": len(records), "records": AttendanceSerializer(records, many=True).data},
            status=status.HTTP_201_CREATED,
        )
