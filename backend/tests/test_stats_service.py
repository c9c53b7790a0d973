"""
Tests unitaires pour les statistiques du tableau de bord.
"""

from datetime import date
from unittest.mock import MagicMock

from sathipasala.services.stats_service import attendance_by_class, student_counts_by_class


def make_db_mock(rows):
    db = MagicMock()
    db.execute.return_value.all.return_value = rows
    return db


def test_student_counts_by_class_toutes_les_classes():
    counts = student_counts_by_class(make_db_mock([("MET", 12), ("KHA", 7)]))
    assert counts == {"ADH": 0, "MET": 12, "KHA": 7, "NEK": 0}


def test_student_counts_by_class_code_inconnu_ignore():
    counts = student_counts_by_class(make_db_mock([("XXX", 3)]))
    assert sum(counts.values()) == 0


def test_attendance_by_class_taux_et_derniere_date():
    rows = [
        ("MET", "present", date(2024, 6, 2)),
        ("MET", "present", date(2024, 6, 9)),
        ("MET", "absent", date(2024, 6, 9)),
        ("KHA", "late", date(2024, 6, 2)),
    ]
    stats = attendance_by_class(make_db_mock(rows), days=30, today=date(2024, 6, 15))

    assert stats["MET"].rate == 66.7
    assert stats["MET"].last_date == date(2024, 6, 9)
    assert stats["KHA"].rate == 0.0
    assert stats["KHA"].last_date == date(2024, 6, 2)
    assert stats["ADH"].rate == 0.0
    assert stats["ADH"].last_date is None
    assert set(stats) == {"ADH", "MET", "KHA", "NEK"}
