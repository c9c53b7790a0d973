"""
Service métier pour les élèves.

- Identifiant BSP_YY_NNNN généré à la création s'il n'est pas fourni
- Tranche d'âge et code de classe dérivés de la date de naissance à chaque écriture
- L'unicité de student_id est garantie par l'index de la base (IntegrityError → DuplicateError)
"""

import math
import random
import uuid
import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sathipasala.exceptions import DomainValidationError, DuplicateError
from sathipasala.models.student import Student
from sathipasala.schemas.common import AgeGroup, BilingualText, ClassCode, OptionalBilingualText, STUDENT_ID_REGEX
from sathipasala.schemas.student import (
    ParentInfoResponse,
    StudentBrief,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)

logger = logging.getLogger(__name__)

STUDENT_ID_PREFIX = "BSP"
MAX_ID_ATTEMPTS = 100

# (âge min, âge max, tranche, classe)
AGE_BRACKETS = [
    (3, 6, AgeGroup.AGE_3_6, ClassCode.ADH),
    (7, 10, AgeGroup.AGE_7_10, ClassCode.MET),
    (11, 14, AgeGroup.AGE_11_14, ClassCode.KHA),
    (15, 17, AgeGroup.AGE_15_17, ClassCode.NEK),
]

SORTABLE_FIELDS = {
    "created_at": Student.created_at,
    "student_id": Student.student_id,
    "name": Student.name_en,
    "date_of_birth": Student.date_of_birth,
    "age_group": Student.age_group,
    "class_code": Student.class_code,
    "class_year": Student.class_year,
}


# --- Tranches d'âge ---

def compute_age(date_of_birth: date, today: Optional[date] = None) -> int:
    """Âge en années révolues (anniversaire pas encore passé cette année → -1)."""
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def age_group_for_age(age: int) -> AgeGroup:
    for low, high, age_group, _ in AGE_BRACKETS:
        if low <= age <= high:
            return age_group
    raise DomainValidationError(f"Âge {age} hors des tranches acceptées (3 à 17 ans).")


def class_code_for_age_group(age_group: AgeGroup) -> ClassCode:
    for _, _, bracket, class_code in AGE_BRACKETS:
        if bracket == age_group:
            return class_code
    raise DomainValidationError(f"Tranche d'âge inconnue : {age_group}")


def derive_placement(
    date_of_birth: date,
    age_group: Optional[AgeGroup] = None,
    class_code: Optional[ClassCode] = None,
    today: Optional[date] = None,
) -> Tuple[AgeGroup, ClassCode]:
    """
    Tranche d'âge et classe correspondant à la date de naissance.
    Une tranche ou une classe fournie explicitement doit être cohérente avec l'âge.
    """
    derived_group = age_group_for_age(compute_age(date_of_birth, today))
    derived_code = class_code_for_age_group(derived_group)
    if age_group is not None and AgeGroup(age_group) != derived_group:
        raise DomainValidationError(
            f"La tranche d'âge {AgeGroup(age_group).value} ne correspond pas à la date de naissance "
            f"(attendu : {derived_group.value})."
        )
    if class_code is not None and ClassCode(class_code) != derived_code:
        raise DomainValidationError(
            f"La classe {ClassCode(class_code).value} ne correspond pas à la date de naissance "
            f"(attendu : {derived_code.value})."
        )
    return derived_group, derived_code


# --- Identifiants ---

def validate_student_id_format(student_id: Optional[str]) -> bool:
    return bool(student_id) and bool(STUDENT_ID_REGEX.match(student_id))


def extract_year_from_student_id(student_id: str, today: Optional[date] = None) -> Optional[int]:
    """Année complète encodée dans l'identifiant (siècle courant), None si format invalide."""
    if not validate_student_id_format(student_id):
        return None
    century = (today or date.today()).year // 100 * 100
    return century + int(student_id.split("_")[1])


def generate_student_id(db: Session, today: Optional[date] = None) -> str:
    """
    Génère un identifiant unique BSP_YY_NNNN (NNNN aléatoire entre 1000 et 9999).
    Lève une ValueError après MAX_ID_ATTEMPTS collisions.
    """
    year_suffix = str((today or date.today()).year)[-2:]
    for _ in range(MAX_ID_ATTEMPTS):
        candidate = f"{STUDENT_ID_PREFIX}_{year_suffix}_{random.randint(1000, 9999)}"
        taken = db.execute(
            select(Student.id).where(Student.student_id == candidate)
        ).scalar()
        if not taken:
            return candidate
        logger.debug("Identifiant %s déjà attribué, nouveau tirage", candidate)
    raise ValueError(f"Impossible de générer un identifiant élève unique après {MAX_ID_ATTEMPTS} essais.")


# --- CRUD ---

def create_student(db: Session, data: StudentCreate) -> StudentResponse:
    """
    Crée un élève.
    Lève DomainValidationError si l'âge est hors tranche, DuplicateError si l'identifiant existe déjà.
    """
    age_group, class_code = derive_placement(data.date_of_birth, data.age_group, data.class_code)
    student_id = data.student_id or generate_student_id(db)

    student = Student(
        student_id=student_id,
        name_en=data.name.en,
        name_si=data.name.si,
        date_of_birth=data.date_of_birth,
        gender=data.gender,
        age_group=age_group.value,
        class_year=data.class_year,
        class_code=class_code.value,
        emergency_contact=data.emergency_contact,
        profile_image_url=data.profile_image_url,
        active=True,
    )
    _apply_parent_info(student, data.parent_info)
    db.add(student)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateError(f"Un élève avec l'identifiant '{student_id}' existe déjà.")
    db.refresh(student)

    logger.info("Élève créé : %s (%s, classe %s)", student.student_id, student.name_en, student.class_code)
    return to_response(student)


def get_students(
    db: Session,
    search: str = "",
    class_year: Optional[str] = None,
    class_code: Optional[ClassCode] = None,
    age_group: Optional[AgeGroup] = None,
    active: Optional[bool] = None,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> Tuple[List[StudentResponse], int]:
    """Retourne une page d'élèves filtrés et le nombre total de résultats."""
    conditions = []
    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(or_(
            Student.name_en.ilike(pattern),
            Student.name_si.ilike(pattern),
            Student.student_id.ilike(pattern),
        ))
    if class_year:
        conditions.append(Student.class_year == class_year)
    if class_code is not None:
        conditions.append(Student.class_code == ClassCode(class_code).value)
    if age_group is not None:
        conditions.append(Student.age_group == AgeGroup(age_group).value)
    if active is not None:
        conditions.append(Student.active.is_(active))

    total = db.execute(
        select(func.count()).select_from(Student).where(*conditions)
    ).scalar() or 0

    column = SORTABLE_FIELDS.get(sort_by, Student.created_at)
    order = column.asc() if sort_order == "asc" else column.desc()
    students = db.execute(
        select(Student)
        .where(*conditions)
        .order_by(order)
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()

    return [to_response(s) for s in students], total


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def get_student(db: Session, student_id: uuid.UUID) -> Optional[StudentResponse]:
    student = db.get(Student, student_id)
    if student is None:
        return None
    return to_response(student)


def update_student(db: Session, student_id: uuid.UUID, data: StudentUpdate) -> Optional[StudentResponse]:
    """
    Met à jour les champs fournis d'un élève.
    La tranche d'âge et la classe sont recalculées à partir de la date de naissance
    (nouvelle ou existante) dès qu'un de ces champs est fourni.
    """
    student = db.get(Student, student_id)
    if student is None:
        return None

    update_data = data.model_dump(
        exclude_unset=True,
        exclude={"name", "parent_info", "age_group", "class_code"},
    )
    for field, value in update_data.items():
        setattr(student, field, value)

    if data.name is not None:
        student.name_en, student.name_si = data.name.en, data.name.si
    if data.parent_info is not None:
        _apply_parent_info(student, data.parent_info)

    if {"date_of_birth", "age_group", "class_code"} & data.model_fields_set:
        age_group, class_code = derive_placement(student.date_of_birth, data.age_group, data.class_code)
        student.age_group, student.class_code = age_group.value, class_code.value

    db.commit()
    db.refresh(student)
    return to_response(student)


def delete_student(db: Session, student_id: uuid.UUID) -> bool:
    """Supprime un élève. Ses présences et résultats d'examen sont supprimés en cascade."""
    student = db.get(Student, student_id)
    if student is None:
        return False
    db.delete(student)
    db.commit()
    return True


def _apply_parent_info(student: Student, parent_info) -> None:
    student.parent_name_en = parent_info.name.en or None
    student.parent_name_si = parent_info.name.si or None
    student.parent_phone = parent_info.phone
    student.parent_email = str(parent_info.email) if parent_info.email else None
    student.parent_address = parent_info.address


def to_brief(student: Student) -> StudentBrief:
    return StudentBrief(
        id=student.id,
        student_id=student.student_id,
        name=BilingualText(en=student.name_en, si=student.name_si),
        class_code=student.class_code,
    )


def to_response(student: Student) -> StudentResponse:
    """Construit le schéma de réponse ; l'âge est recalculé à la lecture."""
    return StudentResponse(
        id=student.id,
        student_id=student.student_id,
        name=BilingualText(en=student.name_en, si=student.name_si),
        date_of_birth=student.date_of_birth,
        age=compute_age(student.date_of_birth),
        age_group=student.age_group,
        class_year=student.class_year,
        class_code=student.class_code,
        gender=student.gender,
        parent_info=ParentInfoResponse(
            name=OptionalBilingualText(en=student.parent_name_en, si=student.parent_name_si),
            phone=student.parent_phone,
            email=student.parent_email,
            address=student.parent_address,
        ),
        emergency_contact=student.emergency_contact,
        profile_image_url=student.profile_image_url,
        active=bool(student.active),
        created_at=student.created_at,
        updated_at=student.updated_at,
    )
