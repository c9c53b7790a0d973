# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# students doit précéder attendances et exam_results.

from sathipasala.models.student import Student  # noqa: F401
from sathipasala.models.attendance import Attendance  # noqa: F401
from sathipasala.models.calendar_event import CalendarEvent  # noqa: F401
from sathipasala.models.exam import Exam, ExamResult  # noqa: F401
