"""
Seat/room/invigilator allocation for one exam.

The allocator is a pure computation over already-resolved inputs: it never
touches the database. Students are packed into synthetic rooms
("R1", "R2", ...) of ``students_per_room`` seats each, synthetic rooms are
bound to physical rooms cyclically (best-effort modulo packing: when more
synthetic rooms are needed than physical rooms exist, physical rooms are
reused and may exceed their declared capacity), and every physical room used
receives one invigilator for the whole run.
"""

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .exceptions import InvalidParameterError, NoRoomsAvailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoomSlot:
    room_id: int
    capacity: int
    building_id: Optional[int] = None
    room_number: str = ""


@dataclass
class SeatAssignment:
    exam_id: int
    student_id: int
    subject_id: Optional[int]
    room_id: int
    room_label: str
    seat_number: str
    invigilator_id: Optional[int] = None


@dataclass
class AllocationResult:
    assignments: List[SeatAssignment]
    # synthetic room label -> physical room id
    room_plan: Dict[str, int]
    room_invigilators: Dict[int, Optional[int]]
    reused_invigilators: bool = False

    @property
    def count(self) -> int:
        return len(self.assignments)

    def rooms_used(self) -> List[int]:
        """Physical room ids in the order they were first bound."""
        return list(dict.fromkeys(self.room_plan.values()))

    def room_occupancy(self) -> Dict[int, int]:
        """Number of distinct students seated in each physical room."""
        seated = {(a.room_id, a.student_id) for a in self.assignments}
        return dict(Counter(room_id for room_id, _ in seated))

    def over_capacity_rooms(self, rooms: Iterable[RoomSlot]) -> List[Dict[str, int]]:
        capacities = {room.room_id: room.capacity for room in rooms}
        report = []
        for room_id, assigned in self.room_occupancy().items():
            capacity = capacities.get(room_id)
            if capacity is not None and assigned > capacity:
                report.append({"room_id": room_id, "capacity": capacity, "assigned": assigned})
        return report


@dataclass
class _PackingCursor:
    room_counter: int = 1
    seat_counter: int = 1
    room_plan: Dict[str, int] = field(default_factory=dict)

    def advance(self, students_per_room: int) -> None:
        self.seat_counter += 1
        if self.seat_counter > students_per_room:
            self.seat_counter = 1
            self.room_counter += 1


class InvigilatorDraw:
    """
    Hand out invigilators from a pool.

    The first phase draws without replacement from a shuffled working copy
    (minus any invigilators already booked through manual overrides). Once
    the working copy is exhausted the full pool is reshuffled and drawn from
    again, so rooms share invigilators instead of going unassigned.
    """

    def __init__(self, pool: Iterable[int], exclude: Iterable[int] = (), rng: Optional[random.Random] = None):
        self._pool = list(dict.fromkeys(pool))
        self._rng = rng or random.Random()
        excluded = set(exclude)
        self._working = [inv for inv in self._pool if inv not in excluded]
        self._rng.shuffle(self._working)
        self.reused = False

    def draw(self) -> Optional[int]:
        if not self._pool:
            return None
        if not self._working:
            self.reused = True
            self._working = list(self._pool)
            self._rng.shuffle(self._working)
        return self._working.pop()


def validate_students_per_room(students_per_room) -> int:
    if isinstance(students_per_room, bool) or not isinstance(students_per_room, int):
        raise InvalidParameterError("students_per_room must be a whole number.")
    if students_per_room < 1:
        raise InvalidParameterError("students_per_room must be at least 1.")
    return students_per_room


def allocate_seating(
    exam_id: int,
    enrollments: Sequence[int],
    rooms: Sequence[RoomSlot],
    subject_scope: Sequence[Optional[int]],
    *,
    room_prefix: str,
    seat_prefix: str,
    students_per_room: int,
    manual_invigilators: Optional[Mapping[int, int]] = None,
    invigilator_pool: Iterable[int] = (),
    rng: Optional[random.Random] = None,
) -> AllocationResult:
    """
    Assign every (student, subject) pair of the exam to a room, seat and invigilator.

    ``enrollments`` is the ordered list of student ids; ``subject_scope`` holds
    subject ids, with ``None`` standing for "no subject". Room and seat counters
    advance once per student, so all subjects of one student share a seat label.
    """
    students_per_room = validate_students_per_room(students_per_room)
    if not rooms:
        raise NoRoomsAvailableError()
    if not subject_scope:
        raise InvalidParameterError("Subject scope must contain at least one entry.")

    manual = dict(manual_invigilators or {})
    cursor = _PackingCursor()
    assignments: List[SeatAssignment] = []

    for student_id in enrollments:
        room_label = f"{room_prefix}{cursor.room_counter}"
        room_id = cursor.room_plan.get(room_label)
        if room_id is None:
            room_id = rooms[(cursor.room_counter - 1) % len(rooms)].room_id
            cursor.room_plan[room_label] = room_id

        seat_number = f"{seat_prefix}{cursor.seat_counter}"
        for subject_id in subject_scope:
            assignments.append(
                SeatAssignment(
                    exam_id=exam_id,
                    student_id=student_id,
                    subject_id=subject_id,
                    room_id=room_id,
                    room_label=room_label,
                    seat_number=seat_number,
                    invigilator_id=manual.get(room_id),
                )
            )
        cursor.advance(students_per_room)

    rooms_used = list(dict.fromkeys(cursor.room_plan.values()))
    draw = InvigilatorDraw(invigilator_pool, exclude=manual.values(), rng=rng)
    room_invigilators: Dict[int, Optional[int]] = {}
    for room_id in rooms_used:
        if room_id in manual:
            room_invigilators[room_id] = manual[room_id]
        else:
            room_invigilators[room_id] = draw.draw()

    for assignment in assignments:
        assignment.invigilator_id = room_invigilators[assignment.room_id]

    if draw.reused:
        logger.info(
            "Invigilator pool exhausted for exam %s; reusing invigilators across %s rooms.",
            exam_id,
            len(rooms_used),
        )

    return AllocationResult(
        assignments=assignments,
        room_plan=dict(cursor.room_plan),
        room_invigilators=room_invigilators,
        reused_invigilators=draw.reused,
    )
