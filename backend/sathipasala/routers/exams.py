"""
Router pour les examens et leurs résultats.
Un seul résultat par (examen, élève) : un second POST renvoie 409,
la révision passe par PUT /api/exams/{id}/results/{student_id}.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from sathipasala.database import get_db
from sathipasala.exceptions import DomainValidationError, DuplicateError, NotFoundError
from sathipasala.schemas.common import AgeGroup, ApiResponse
from sathipasala.schemas.exam import (
    ExamCreate,
    ExamResponse,
    ExamResultCreate,
    ExamResultResponse,
    ExamResultUpdate,
    ExamUpdate,
)
from sathipasala.services import exam_service

router = APIRouter(prefix="/api/exams", tags=["Examens"])


@router.get("", response_model=ApiResponse[List[ExamResponse]], summary="Lister les examens")
def list_exams(age_group: Optional[AgeGroup] = None, db: Session = Depends(get_db)):
    return ApiResponse[List[ExamResponse]](data=exam_service.get_exams(db, age_group))


@router.post("", response_model=ApiResponse[ExamResponse], status_code=201, summary="Créer un examen")
def create_exam(data: ExamCreate, db: Session = Depends(get_db)):
    return ApiResponse[ExamResponse](data=exam_service.create_exam(db, data), message="Examen créé.")


@router.get("/{exam_id}", response_model=ApiResponse[ExamResponse], summary="Détail d'un examen")
def get_exam(exam_id: uuid.UUID, db: Session = Depends(get_db)):
    exam = exam_service.get_exam(db, exam_id)
    if exam is None:
        raise HTTPException(status_code=404, detail="Examen introuvable.")
    return ApiResponse[ExamResponse](data=exam)


@router.put("/{exam_id}", response_model=ApiResponse[ExamResponse], summary="Modifier un examen")
def update_exam(exam_id: uuid.UUID, data: ExamUpdate, db: Session = Depends(get_db)):
    try:
        exam = exam_service.update_exam(db, exam_id, data)
    except DomainValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if exam is None:
        raise HTTPException(status_code=404, detail="Examen introuvable.")
    return ApiResponse[ExamResponse](data=exam, message="Examen mis à jour.")


@router.delete("/{exam_id}", response_model=ApiResponse[None], summary="Supprimer un examen")
def delete_exam(exam_id: uuid.UUID, db: Session = Depends(get_db)):
    """Supprime un examen et tous ses résultats."""
    if not exam_service.delete_exam(db, exam_id):
        raise HTTPException(status_code=404, detail="Examen introuvable.")
    return ApiResponse[None](message="Examen supprimé.")


@router.get("/{exam_id}/results", response_model=ApiResponse[List[ExamResultResponse]], summary="Résultats d'un examen")
def list_results(exam_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        results = exam_service.get_results(db, exam_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ApiResponse[List[ExamResultResponse]](data=results)


@router.post(
    "/{exam_id}/results",
    response_model=ApiResponse[ExamResultResponse],
    status_code=201,
    summary="Enregistrer le résultat d'un élève",
)
def create_result(exam_id: uuid.UUID, data: ExamResultCreate, db: Session = Depends(get_db)):
    """Le score total est calculé selon le type d'examen (écrit, oral ou moyenne des deux)."""
    try:
        result = exam_service.create_result(db, exam_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except DomainValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ApiResponse[ExamResultResponse](data=result, message="Résultat enregistré.")


@router.put(
    "/{exam_id}/results/{student_id}",
    response_model=ApiResponse[ExamResultResponse],
    summary="Réviser le résultat d'un élève",
)
def update_result(
    exam_id: uuid.UUID,
    student_id: uuid.UUID,
    data: ExamResultUpdate,
    db: Session = Depends(get_db),
):
    try:
        result = exam_service.update_result(db, exam_id, student_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DomainValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Aucun résultat pour cet élève à cet examen.")
    return ApiResponse[ExamResultResponse](data=result, message="Résultat mis à jour.")
