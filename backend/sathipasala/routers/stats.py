"""
Router des statistiques du tableau de bord.
"""

from typing import Dict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sathipasala.database import get_db
from sathipasala.schemas.common import ApiResponse
from sathipasala.schemas.stats import ClassAttendanceStat
from sathipasala.services import stats_service

router = APIRouter(prefix="/api/stats", tags=["Statistiques"])


@router.get("/student-counts-by-class", response_model=ApiResponse[Dict[str, int]], summary="Effectifs par classe")
def student_counts_by_class(db: Session = Depends(get_db)):
    return ApiResponse[Dict[str, int]](data=stats_service.student_counts_by_class(db))


@router.get(
    "/attendance-by-class",
    response_model=ApiResponse[Dict[str, ClassAttendanceStat]],
    summary="Taux de présence par classe",
)
def attendance_by_class(days: int = Query(30, ge=1, le=365), db: Session = Depends(get_db)):
    """Taux de présence et dernière date de cours de chaque classe sur les `days` derniers jours."""
    return ApiResponse[Dict[str, ClassAttendanceStat]](data=stats_service.attendance_by_class(db, days=days))
