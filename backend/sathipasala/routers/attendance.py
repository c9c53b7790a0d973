"""
Router pour les présences.
Marquage unitaire (POST /api/attendance) ou par registre complet (POST /api/attendance/batch),
consultation par date, historique d'un élève, rapport de période et calendrier.
"""

import uuid
import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from sathipasala.database import get_db
from sathipasala.exceptions import DomainValidationError, NonClassDayError, NotFoundError
from sathipasala.schemas.attendance import (
    AttendanceBatch,
    AttendanceCreate,
    AttendanceReport,
    AttendanceResponse,
    AttendanceWithStudent,
    BatchResult,
    StudentAttendanceHistory,
)
from sathipasala.schemas.calendar import CalendarEntry
from sathipasala.schemas.common import ApiResponse, ClassCode, EventType
from sathipasala.services import attendance_service, calendar_service

router = APIRouter(prefix="/api/attendance", tags=["Présences"])


@router.get("", response_model=ApiResponse[List[AttendanceWithStudent]], summary="Présences d'une date")
def list_attendance(
    date: dt.date,
    class_code: Optional[ClassCode] = None,
    db: Session = Depends(get_db),
):
    records = attendance_service.get_attendance_by_date(db, date, class_code)
    return ApiResponse[List[AttendanceWithStudent]](data=records)


@router.post("", response_model=ApiResponse[AttendanceResponse], status_code=201, summary="Marquer une présence")
def mark_attendance(data: AttendanceCreate, response: Response, db: Session = Depends(get_db)):
    """
    Enregistre la présence d'un élève pour une date.
    Un enregistrement existant pour (élève, date) est mis à jour (200), sinon créé (201).
    """
    try:
        attendance, created = attendance_service.mark_attendance(db, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if not created:
        response.status_code = 200
    return ApiResponse[AttendanceResponse](
        data=attendance,
        message="Présence enregistrée." if created else "Présence mise à jour.",
    )


@router.post("/batch", response_model=ApiResponse[BatchResult], summary="Marquer les présences d'un registre")
def mark_batch_attendance(batch: AttendanceBatch, db: Session = Depends(get_db)):
    """
    Marque les présences de plusieurs élèves pour une même date.

    - `mark_all` applique le même statut à tout le registre
    - une date qui n'est ni un dimanche ni un Poya est refusée (409)
      sauf si `confirm_non_class_day` vaut true
    - un élève inconnu est compté dans `failed` sans bloquer le lot
    """
    try:
        result = attendance_service.mark_batch_attendance(db, batch)
    except NonClassDayError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return ApiResponse[BatchResult](
        data=result,
        message=f"{result.created} créées, {result.updated} mises à jour, {result.failed} échecs.",
    )


@router.get("/events", response_model=ApiResponse[List[CalendarEntry]], summary="Calendrier des présences")
def list_calendar_entries(
    year: int = Query(..., ge=1900, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    type: Optional[EventType] = None,
    db: Session = Depends(get_db),
):
    """Évènements enregistrés de la période, complétés par les jours fériés et Poya générés."""
    entries = calendar_service.list_calendar_entries(db, year, month=month, event_type=type)
    return ApiResponse[List[CalendarEntry]](data=entries)


@router.get("/report", response_model=ApiResponse[AttendanceReport], summary="Rapport de présences")
def get_attendance_report(
    start_date: dt.date,
    end_date: dt.date,
    class_code: Optional[ClassCode] = None,
    db: Session = Depends(get_db),
):
    """Résumé par élève et registres journaliers par classe sur la période."""
    try:
        report = attendance_service.get_attendance_report(db, start_date, end_date, class_code)
    except DomainValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ApiResponse[AttendanceReport](data=report)


@router.get(
    "/student/{student_id}",
    response_model=ApiResponse[StudentAttendanceHistory],
    summary="Historique de présences d'un élève",
)
def get_student_attendance(
    student_id: uuid.UUID,
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    db: Session = Depends(get_db),
):
    try:
        history = attendance_service.get_student_attendance(db, student_id, start_date, end_date)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DomainValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ApiResponse[StudentAttendanceHistory](data=history)


@router.delete("/{attendance_id}", response_model=ApiResponse[None], summary="Supprimer une présence")
def delete_attendance(attendance_id: uuid.UUID, db: Session = Depends(get_db)):
    if not attendance_service.delete_attendance(db, attendance_id):
        raise HTTPException(status_code=404, detail="Présence introuvable.")
    return ApiResponse[None](message="Présence supprimée.")
