"""
Router pour les élèves.
Listage avec recherche, filtres et pagination (GET /api/students)
Création (POST /api/students), lecture, mise à jour et suppression (/api/students/{id})
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from sathipasala.database import get_db
from sathipasala.exceptions import DomainValidationError, DuplicateError
from sathipasala.schemas.common import AgeGroup, ApiResponse, ClassCode, PaginatedResponse, Pagination
from sathipasala.schemas.student import StudentCreate, StudentResponse, StudentUpdate
from sathipasala.services import student_service

router = APIRouter(prefix="/api/students", tags=["Élèves"])


@router.get("", response_model=PaginatedResponse[StudentResponse], summary="Lister les élèves")
def list_students(
    search: str = "",
    class_year: Optional[str] = None,
    class_code: Optional[ClassCode] = None,
    age_group: Optional[AgeGroup] = None,
    active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    """
    Retourne une page d'élèves.
    La recherche porte sur les noms (anglais et cinghalais) et l'identifiant BSP.
    """
    students, total = student_service.get_students(
        db,
        search=search,
        class_year=class_year,
        class_code=class_code,
        age_group=age_group,
        active=active,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return PaginatedResponse[StudentResponse](
        data=students,
        pagination=Pagination(
            total_items=total,
            total_pages=student_service.total_pages(total, limit),
            current_page=page,
            limit=limit,
        ),
    )


@router.post("", response_model=ApiResponse[StudentResponse], status_code=201, summary="Créer un élève")
def create_student(data: StudentCreate, db: Session = Depends(get_db)):
    """
    Crée un élève. L'identifiant BSP_YY_NNNN est généré s'il n'est pas fourni ;
    la tranche d'âge et la classe sont dérivées de la date de naissance.
    """
    try:
        student = student_service.create_student(db, data)
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except DomainValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ApiResponse[StudentResponse](data=student, message="Élève créé.")


@router.get("/{student_id}", response_model=ApiResponse[StudentResponse], summary="Détail d'un élève")
def get_student(student_id: uuid.UUID, db: Session = Depends(get_db)):
    student = student_service.get_student(db, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return ApiResponse[StudentResponse](data=student)


@router.put("/{student_id}", response_model=ApiResponse[StudentResponse], summary="Modifier un élève")
def update_student(student_id: uuid.UUID, data: StudentUpdate, db: Session = Depends(get_db)):
    """Met à jour les champs fournis d'un élève. Les champs absents ne sont pas modifiés."""
    try:
        student = student_service.update_student(db, student_id, data)
    except DomainValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return ApiResponse[StudentResponse](data=student, message="Élève mis à jour.")


@router.delete("/{student_id}", response_model=ApiResponse[None], summary="Supprimer un élève")
def delete_student(student_id: uuid.UUID, db: Session = Depends(get_db)):
    """Supprime définitivement un élève. Ses présences et résultats sont supprimés en cascade."""
    if not student_service.delete_student(db, student_id):
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return ApiResponse[None](message="Élève supprimé.")
