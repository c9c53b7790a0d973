"""
Statistiques du tableau de bord : effectifs et taux de présence par classe.
"""

import logging
from datetime import date, timedelta
from typing import Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from sathipasala.models.attendance import Attendance
from sathipasala.models.student import Student
from sathipasala.schemas.common import AttendanceStatus, ClassCode
from sathipasala.schemas.stats import ClassAttendanceStat
from sathipasala.services.attendance_service import attendance_rate

logger = logging.getLogger(__name__)


def student_counts_by_class(db: Session) -> Dict[str, int]:
    """Nombre d'élèves par code de classe ; chaque classe est présente (0 si vide)."""
    counts = {code.value: 0 for code in ClassCode}
    rows = db.execute(
        select(Student.class_code, func.count())
        .group_by(Student.class_code)
    ).all()
    for class_code, count in rows:
        if class_code in counts:
            counts[class_code] = count
    return counts


def attendance_by_class(db: Session, days: int = 30, today: Optional[date] = None) -> Dict[str, ClassAttendanceStat]:
    """Taux de présence et dernière date de cours par classe sur les `days` derniers jours."""
    since = (today or date.today()) - timedelta(days=days)
    rows = db.execute(
        select(Student.class_code, Attendance.status, Attendance.date)
        .join(Student, Student.id == Attendance.student_id)
        .where(Attendance.date >= since)
    ).all()

    present = {code.value: 0 for code in ClassCode}
    total = {code.value: 0 for code in ClassCode}
    last_date: Dict[str, Optional[date]] = {code.value: None for code in ClassCode}
    for class_code, status, day in rows:
        if class_code not in total:
            continue
        total[class_code] += 1
        if status == AttendanceStatus.PRESENT.value:
            present[class_code] += 1
        if last_date[class_code] is None or day > last_date[class_code]:
            last_date[class_code] = day

    return {
        code: ClassAttendanceStat(rate=attendance_rate(present[code], total[code]), last_date=last_date[code])
        for code in total
    }
