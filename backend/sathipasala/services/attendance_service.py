"""
Service de gestion des présences.

Deux couches :
- Agrégation pure (sans I/O) : regroupement, résumés par élève, registres
  journaliers par classe, taux de présence, marquage global, garde « jour de cours »
- Persistance : marquage unitaire ou en lot (upsert par (élève, date)), lecture,
  rapports, suppression

Le taux de présence = présents / (présents + absents + retards), en pourcentage
arrondi à une décimale, 0 sans enregistrement. Il est recalculé à chaque lecture.
"""

import uuid
import logging
from collections import Counter, defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from sathipasala.exceptions import DomainValidationError, NonClassDayError, NotFoundError
from sathipasala.models.attendance import Attendance
from sathipasala.models.calendar_event import CalendarEvent
from sathipasala.models.student import Student
from sathipasala.schemas.attendance import (
    AttendanceBatch,
    AttendanceCreate,
    AttendanceMark,
    AttendanceReport,
    AttendanceResponse,
    AttendanceSummary,
    AttendanceWithStudent,
    BatchResult,
    DailyRoster,
    FlowerOffering,
    RosterEntry,
    StudentAttendanceHistory,
    StudentAttendanceSummary,
)
from sathipasala.schemas.common import AttendanceStatus, ClassCode, EventType
from sathipasala.services.calendar_service import get_poya_days, is_class_day
from sathipasala.services.student_service import to_brief

logger = logging.getLogger(__name__)


# ============================================================
# Agrégation
# ============================================================

def attendance_rate(present: int, total: int) -> float:
    """Pourcentage de présence arrondi à une décimale, toujours dans [0, 100]."""
    if total <= 0:
        return 0.0
    return round(min(present, total) / total * 100, 1)


def group_records(records: Iterable) -> Dict[uuid.UUID, Dict[AttendanceStatus, list]]:
    """Partitionne les enregistrements par élève, puis par statut."""
    grouped: Dict[uuid.UUID, Dict[AttendanceStatus, list]] = defaultdict(
        lambda: {status: [] for status in AttendanceStatus}
    )
    for record in records:
        grouped[record.student_id][AttendanceStatus(record.status)].append(record)
    return dict(grouped)


def summarize_student(records: Sequence) -> AttendanceSummary:
    """Compteurs présents / absents / retards d'un élève sur la période."""
    counts = Counter(AttendanceStatus(r.status) for r in records)
    present = counts[AttendanceStatus.PRESENT]
    absent = counts[AttendanceStatus.ABSENT]
    late = counts[AttendanceStatus.LATE]
    total = present + absent + late
    return AttendanceSummary(
        present=present,
        absent=absent,
        late=late,
        total=total,
        attendance_rate=attendance_rate(present, total),
        flower_offerings=sum(1 for r in records if r.flower_brought),
        last_attendance=max((r.date for r in records), default=None),
    )


def summarize_roster(students: Sequence[Student], records: Iterable) -> List[StudentAttendanceSummary]:
    """Un résumé par élève du registre ; un élève sans enregistrement a un résumé nul."""
    by_student: Dict[uuid.UUID, list] = defaultdict(list)
    for record in records:
        by_student[record.student_id].append(record)
    return [
        StudentAttendanceSummary(student=to_brief(s), summary=summarize_student(by_student.get(s.id, [])))
        for s in students
    ]


def daily_rosters(students: Sequence[Student], records: Iterable) -> List[DailyRoster]:
    """
    Registre par date et par classe, trié par date puis code de classe.
    Les enregistrements d'élèves hors registre sont ignorés.
    """
    roster = {s.id: s for s in students}
    buckets: Dict[Tuple[date, str], list] = defaultdict(list)
    for record in records:
        student = roster.get(record.student_id)
        if student is None:
            continue
        buckets[(record.date, student.class_code)].append((student, record))

    result = []
    for (day, class_code), pairs in sorted(buckets.items(), key=lambda item: item[0]):
        summary = summarize_student([record for _, record in pairs])
        entries = [
            RosterEntry(
                student=to_brief(student),
                status=AttendanceStatus(record.status),
                flower_brought=bool(record.flower_brought),
            )
            for student, record in sorted(pairs, key=lambda p: p[0].name_en)
        ]
        result.append(DailyRoster(
            date=day,
            class_code=class_code,
            entries=entries,
            present=summary.present,
            absent=summary.absent,
            late=summary.late,
            total=summary.total,
            attendance_rate=summary.attendance_rate,
            flower_offerings=summary.flower_offerings,
        ))
    return result


def apply_bulk_status(pending: Sequence[AttendanceMark], status: AttendanceStatus) -> List[AttendanceMark]:
    """Affecte le même statut à tous les élèves du registre avant enregistrement."""
    return [mark.model_copy(update={"status": AttendanceStatus(status)}) for mark in pending]


def ensure_class_day(day: date, poya_days: Iterable[str], confirmed: bool = False) -> None:
    """
    Garde du flux de marquage : une date qui n'est ni un dimanche ni un Poya
    doit être explicitement confirmée par l'appelant.
    """
    if confirmed or is_class_day(day, poya_days):
        return
    raise NonClassDayError(
        f"Le {day.isoformat()} n'est ni un dimanche ni un jour de Poya. "
        "Confirmez explicitement pour enregistrer les présences."
    )


# ============================================================
# Persistance
# ============================================================

def recorded_poya_days(db: Session, day: date) -> List[str]:
    """Dates des évènements de type Poya enregistrés au calendrier pour ce jour."""
    dates = db.execute(
        select(CalendarEvent.date).where(
            CalendarEvent.event_type == EventType.POYA.value,
            CalendarEvent.date == day,
        )
    ).scalars().all()
    return [d.isoformat() for d in dates]


def mark_attendance(db: Session, data: AttendanceCreate) -> Tuple[AttendanceResponse, bool]:
    """
    Marque la présence d'un élève pour une date (upsert).
    Retourne (présence, créée). Lève NotFoundError si l'élève n'existe pas.
    """
    if db.get(Student, data.student_id) is None:
        raise NotFoundError(f"Élève {data.student_id} introuvable.")

    attendance = db.execute(
        select(Attendance).where(
            Attendance.student_id == data.student_id,
            Attendance.date == data.date,
        )
    ).scalar()

    created = attendance is None
    if created:
        attendance = Attendance(student_id=data.student_id, date=data.date)
        db.add(attendance)
    _apply_mark(attendance, data)

    db.commit()
    db.refresh(attendance)
    logger.info(
        "Présence %s : élève %s le %s (%s)",
        "créée" if created else "mise à jour", data.student_id, data.date, data.status.value,
    )
    return to_response(attendance), created


def mark_batch_attendance(db: Session, batch: AttendanceBatch) -> BatchResult:
    """
    Marque les présences d'un registre complet pour une date.

    Étapes :
    1. Garde « jour de cours » (dimanche, Poya calculé ou Poya enregistré au
       calendrier, sinon confirmation requise)
    2. Marquage global éventuel (mark_all)
    3. Upsert par élève ; un élève inconnu est compté en échec sans interrompre le lot
    Toute la transaction est commitée en une seule fois.
    """
    poya_days = get_poya_days(batch.date.year)
    if not batch.confirm_non_class_day and not is_class_day(batch.date, poya_days):
        poya_days = [*poya_days, *recorded_poya_days(db, batch.date)]
    ensure_class_day(batch.date, poya_days, batch.confirm_non_class_day)

    marks = apply_bulk_status(batch.records, batch.mark_all) if batch.mark_all else list(batch.records)
    student_ids = list({m.student_id for m in marks})

    known = set(db.execute(
        select(Student.id).where(Student.id.in_(student_ids))
    ).scalars().all())

    # Les présences créées dans ce lot y sont ajoutées (autoflush=False : invisibles via SELECT)
    existing: Dict[uuid.UUID, Attendance] = {
        a.student_id: a for a in db.execute(
            select(Attendance).where(
                Attendance.date == batch.date,
                Attendance.student_id.in_(student_ids),
            )
        ).scalars().all()
    }

    result = BatchResult(created=0, updated=0, failed=0, errors=[])
    for mark in marks:
        if mark.student_id not in known:
            result.failed += 1
            result.errors.append(f"Élève introuvable : {mark.student_id}")
            continue

        attendance = existing.get(mark.student_id)
        if attendance is None:
            attendance = Attendance(student_id=mark.student_id, date=batch.date)
            db.add(attendance)
            existing[mark.student_id] = attendance
            result.created += 1
        else:
            result.updated += 1
        _apply_mark(attendance, mark)

    db.commit()

    logger.info(
        "Présences du %s : %d créées, %d mises à jour, %d échecs",
        batch.date, result.created, result.updated, result.failed,
    )
    return result


def get_attendance_by_date(db: Session, day: date, class_code: Optional[ClassCode] = None) -> List[AttendanceWithStudent]:
    """Présences d'une date, éventuellement restreintes à une classe."""
    query = (
        select(Attendance, Student)
        .join(Student, Student.id == Attendance.student_id)
        .where(Attendance.date == day)
    )
    if class_code is not None:
        query = query.where(Student.class_code == ClassCode(class_code).value)

    rows = db.execute(query.order_by(Student.name_en)).all()
    return [
        AttendanceWithStudent(**to_response(attendance).model_dump(), student=to_brief(student))
        for attendance, student in rows
    ]


def get_student_attendance(
    db: Session,
    student_id: uuid.UUID,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> StudentAttendanceHistory:
    """Historique d'un élève (du plus récent au plus ancien) et son résumé."""
    student = db.get(Student, student_id)
    if student is None:
        raise NotFoundError(f"Élève {student_id} introuvable.")
    _check_range(start_date, end_date)

    query = select(Attendance).where(Attendance.student_id == student_id)
    if start_date is not None:
        query = query.where(Attendance.date >= start_date)
    if end_date is not None:
        query = query.where(Attendance.date <= end_date)

    records = db.execute(query.order_by(Attendance.date.desc())).scalars().all()
    return StudentAttendanceHistory(
        student=to_brief(student),
        records=[to_response(r) for r in records],
        summary=summarize_student(records),
    )


def get_attendance_report(
    db: Session,
    start_date: date,
    end_date: date,
    class_code: Optional[ClassCode] = None,
) -> AttendanceReport:
    """Résumés par élève et registres journaliers des élèves actifs sur la période."""
    _check_range(start_date, end_date)

    student_query = select(Student).where(Student.active.is_(True))
    if class_code is not None:
        student_query = student_query.where(Student.class_code == ClassCode(class_code).value)
    students = db.execute(student_query.order_by(Student.class_code, Student.name_en)).scalars().all()

    records = []
    if students:
        records = db.execute(
            select(Attendance).where(
                Attendance.student_id.in_([s.id for s in students]),
                Attendance.date >= start_date,
                Attendance.date <= end_date,
            )
        ).scalars().all()

    return AttendanceReport(
        start_date=start_date,
        end_date=end_date,
        class_code=ClassCode(class_code).value if class_code is not None else None,
        overall=summarize_student(records),
        students=summarize_roster(students, records),
        days=daily_rosters(students, records),
    )


def delete_attendance(db: Session, attendance_id: uuid.UUID) -> bool:
    """Supprime une présence. Retourne True si supprimée, False si introuvable."""
    attendance = db.get(Attendance, attendance_id)
    if attendance is None:
        return False
    db.delete(attendance)
    db.commit()
    return True


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date is not None and end_date is not None and start_date > end_date:
        raise DomainValidationError("La date de début doit précéder la date de fin.")


def _apply_mark(attendance: Attendance, mark: AttendanceMark) -> None:
    attendance.status = mark.status.value
    attendance.reason = mark.reason
    attendance.flower_brought = mark.flower_offering.brought
    attendance.flower_type = mark.flower_offering.type
    attendance.flower_notes = mark.flower_offering.notes or None


def to_response(attendance: Attendance) -> AttendanceResponse:
    return AttendanceResponse(
        id=attendance.id,
        student_id=attendance.student_id,
        date=attendance.date,
        status=AttendanceStatus(attendance.status),
        reason=attendance.reason,
        flower_offering=FlowerOffering(
            brought=bool(attendance.flower_brought),
            type=attendance.flower_type,
            notes=attendance.flower_notes or "",
        ),
        created_at=attendance.created_at,
        updated_at=attendance.updated_at,
    )
