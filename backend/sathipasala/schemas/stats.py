"""
Schémas Pydantic pour les statistiques du tableau de bord.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel


class ClassAttendanceStat(BaseModel):
    rate: float
    last_date: Optional[dt.date] = None
