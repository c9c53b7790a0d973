"""
Service métier pour les examens et leurs résultats.

Invariant : un seul résultat par couple (examen, élève), garanti par l'index
uq_exam_result_exam_student. Une seconde insertion échoue (DuplicateError) ;
la révision d'un résultat passe par update_result().
"""

import uuid
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sathipasala.exceptions import DomainValidationError, DuplicateError, NotFoundError
from sathipasala.models.exam import Exam, ExamResult
from sathipasala.models.student import Student
from sathipasala.schemas.common import AgeGroup, BilingualText, ExamType, OptionalBilingualText
from sathipasala.schemas.exam import (
    ExamCreate,
    ExamResponse,
    ExamResultCreate,
    ExamResultResponse,
    ExamResultUpdate,
    ExamUpdate,
)

logger = logging.getLogger(__name__)


def compute_total_score(exam_type: ExamType, written_score: float, oral_score: float) -> float:
    """
    Score total selon le type d'examen :
    écrit → score écrit, oral → score oral, combiné → moyenne des deux.
    """
    exam_type = ExamType(exam_type)
    if exam_type == ExamType.WRITTEN:
        return float(written_score)
    if exam_type == ExamType.ORAL:
        return float(oral_score)
    return round((written_score + oral_score) / 2, 2)


def _check_scores(exam: Exam, written_score: float, oral_score: float) -> None:
    for label, score in (("écrit", written_score), ("oral", oral_score)):
        if not 0 <= score <= exam.max_score:
            raise DomainValidationError(
                f"Score {label} {score} hors limites (0 à {exam.max_score})."
            )


# --- Examens ---

def create_exam(db: Session, data: ExamCreate) -> ExamResponse:
    exam = Exam(
        title_en=data.title.en,
        title_si=data.title.si,
        date=data.date,
        age_group=data.age_group.value,
        exam_type=data.exam_type.value,
        max_score=data.max_score,
        pass_mark=data.pass_mark,
    )
    db.add(exam)
    db.commit()
    db.refresh(exam)
    logger.info("Examen créé : %s (%s, %s)", exam.title_en, exam.age_group, exam.date)
    return _exam_to_response(exam)


def get_exams(db: Session, age_group: Optional[AgeGroup] = None) -> List[ExamResponse]:
    """Retourne les examens, du plus récent au plus ancien."""
    query = select(Exam)
    if age_group is not None:
        query = query.where(Exam.age_group == AgeGroup(age_group).value)
    exams = db.execute(query.order_by(Exam.date.desc())).scalars().all()
    return [_exam_to_response(e) for e in exams]


def get_exam(db: Session, exam_id: uuid.UUID) -> Optional[ExamResponse]:
    exam = db.get(Exam, exam_id)
    if exam is None:
        return None
    return _exam_to_response(exam)


def update_exam(db: Session, exam_id: uuid.UUID, data: ExamUpdate) -> Optional[ExamResponse]:
    """
    Met à jour les champs fournis d'un examen.

    - La note de passage doit rester comprise entre 0 et le score maximum
    - Le score maximum ne peut pas descendre sous un score déjà enregistré
    - Un changement de type recalcule le total de tous les résultats de l'examen
    """
    exam = db.get(Exam, exam_id)
    if exam is None:
        return None

    update_data = {
        field: value.value if hasattr(value, "value") else value
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True, exclude={"title"}).items()
    }
    max_score = update_data.get("max_score", exam.max_score)
    pass_mark = update_data.get("pass_mark", exam.pass_mark)
    if not 0 <= pass_mark <= max_score:
        raise DomainValidationError("La note de passage doit être comprise entre 0 et le score maximum.")

    type_changed = update_data.get("exam_type", exam.exam_type) != exam.exam_type
    results = []
    if type_changed or "max_score" in update_data:
        results = db.execute(select(ExamResult).where(ExamResult.exam_id == exam_id)).scalars().all()

    highest = max((max(r.written_score or 0, r.oral_score or 0) for r in results), default=0)
    if highest > max_score:
        raise DomainValidationError(
            f"Le score maximum ({max_score}) est inférieur au meilleur score déjà enregistré ({highest})."
        )

    for field, value in update_data.items():
        setattr(exam, field, value)
    if data.title is not None:
        exam.title_en, exam.title_si = data.title.en, data.title.si

    if type_changed:
        for result in results:
            result.total_score = compute_total_score(
                exam.exam_type, result.written_score or 0, result.oral_score or 0,
            )
        logger.info("Examen %s : type %s, %d totaux recalculés", exam_id, exam.exam_type, len(results))

    db.commit()
    db.refresh(exam)
    return _exam_to_response(exam)


def delete_exam(db: Session, exam_id: uuid.UUID) -> bool:
    """Supprime un examen et ses résultats (cascade)."""
    exam = db.get(Exam, exam_id)
    if exam is None:
        return False
    db.delete(exam)
    db.commit()
    return True


# --- Résultats ---

def create_result(db: Session, exam_id: uuid.UUID, data: ExamResultCreate) -> ExamResultResponse:
    """
    Enregistre le résultat d'un élève ; le total est calculé à l'écriture.
    Lève NotFoundError (examen/élève), DomainValidationError (score hors limites),
    DuplicateError si un résultat existe déjà pour ce couple.
    """
    exam = db.get(Exam, exam_id)
    if exam is None:
        raise NotFoundError("Examen introuvable.")
    if db.get(Student, data.student_id) is None:
        raise NotFoundError(f"Élève {data.student_id} introuvable.")
    _check_scores(exam, data.written_score, data.oral_score)

    result = ExamResult(
        exam_id=exam_id,
        student_id=data.student_id,
        written_score=data.written_score,
        oral_score=data.oral_score,
        total_score=compute_total_score(exam.exam_type, data.written_score, data.oral_score),
        remarks_en=data.remarks.en or None,
        remarks_si=data.remarks.si or None,
    )
    db.add(result)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateError(
            "Un résultat existe déjà pour cet élève à cet examen. Utilisez la mise à jour."
        )
    db.refresh(result)

    logger.info("Résultat enregistré : examen %s, élève %s, total %s", exam_id, data.student_id, result.total_score)
    return _result_to_response(result, exam)


def update_result(
    db: Session,
    exam_id: uuid.UUID,
    student_id: uuid.UUID,
    data: ExamResultUpdate,
) -> Optional[ExamResultResponse]:
    """Révise un résultat existant et recalcule le total. Retourne None si aucun résultat."""
    exam = db.get(Exam, exam_id)
    if exam is None:
        raise NotFoundError("Examen introuvable.")

    result = db.execute(
        select(ExamResult).where(
            ExamResult.exam_id == exam_id,
            ExamResult.student_id == student_id,
        )
    ).scalar()
    if result is None:
        return None

    written = data.written_score if data.written_score is not None else result.written_score
    oral = data.oral_score if data.oral_score is not None else result.oral_score
    _check_scores(exam, written, oral)

    result.written_score = written
    result.oral_score = oral
    result.total_score = compute_total_score(exam.exam_type, written, oral)
    if data.remarks is not None:
        result.remarks_en = data.remarks.en or None
        result.remarks_si = data.remarks.si or None

    db.commit()
    db.refresh(result)
    return _result_to_response(result, exam)


def get_results(db: Session, exam_id: uuid.UUID) -> List[ExamResultResponse]:
    """Résultats d'un examen, du meilleur au moins bon."""
    exam = db.get(Exam, exam_id)
    if exam is None:
        raise NotFoundError("Examen introuvable.")
    results = db.execute(
        select(ExamResult)
        .where(ExamResult.exam_id == exam_id)
        .order_by(ExamResult.total_score.desc())
    ).scalars().all()
    return [_result_to_response(r, exam) for r in results]


def _exam_to_response(exam: Exam) -> ExamResponse:
    return ExamResponse(
        id=exam.id,
        title=BilingualText(en=exam.title_en, si=exam.title_si),
        date=exam.date,
        age_group=exam.age_group,
        exam_type=ExamType(exam.exam_type),
        max_score=exam.max_score,
        pass_mark=exam.pass_mark,
        created_at=exam.created_at,
        updated_at=exam.updated_at,
    )


def _result_to_response(result: ExamResult, exam: Exam) -> ExamResultResponse:
    return ExamResultResponse(
        id=result.id,
        exam_id=result.exam_id,
        student_id=result.student_id,
        written_score=result.written_score or 0,
        oral_score=result.oral_score or 0,
        total_score=result.total_score or 0,
        passed=(result.total_score or 0) >= exam.pass_mark,
        remarks=OptionalBilingualText(en=result.remarks_en, si=result.remarks_si),
        created_at=result.created_at,
        updated_at=result.updated_at,
    )
