"""
Router public pour les jours fériés et les jours de Poya.
"""

import datetime as dt
from typing import List

from fastapi import APIRouter, Path

from sathipasala.schemas.calendar import CalendarYearResponse, DayClassification, Holiday
from sathipasala.schemas.common import ApiResponse
from sathipasala.services import calendar_service

router = APIRouter(prefix="/api/holidays", tags=["Jours fériés"])


@router.get("/classify", response_model=ApiResponse[DayClassification], summary="Classer une date")
def classify_day(date: dt.date):
    """Type de jour (Poya, férié, ordinaire) et indication « jour de cours »."""
    calendar = calendar_service.build_calendar(date.year)
    return ApiResponse[DayClassification](data=DayClassification(
        date=date,
        day_type=calendar.classify(date),
        is_sunday=calendar_service.is_sunday(date),
        is_class_day=calendar.is_class_day(date),
    ))


@router.get("/{year}", response_model=ApiResponse[List[Holiday]], summary="Jours fériés publiés d'une année")
def get_holidays(year: int = Path(..., ge=1900, le=2100)):
    """Liste publiée des jours fériés (vide si l'année n'est pas publiée)."""
    return ApiResponse[List[Holiday]](data=calendar_service.get_published_holidays(year))


@router.get("/{year}/calendar", response_model=ApiResponse[CalendarYearResponse], summary="Calendrier d'une année")
def get_calendar(year: int = Path(..., ge=1900, le=2100)):
    """
    Jours fériés de l'année (source configurée, repli sur la table statique)
    et jours de Poya calculés.
    """
    calendar = calendar_service.build_calendar(year)
    return ApiResponse[CalendarYearResponse](data=CalendarYearResponse(
        year=calendar.year,
        holidays=calendar.holidays,
        poya_days=calendar.poya_days,
    ))
