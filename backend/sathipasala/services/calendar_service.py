"""
Service calendrier : jours fériés, jours de Poya et classification des dates.

Les jours de Poya sont une APPROXIMATION : on part du 5 janvier et on avance
par pas d'un mois synodique moyen (29,53059 jours), arrondi au jour le plus
proche. Aucun calcul astronomique réel n'est effectué ; les dates officielles
de Poya d'une année publiée restent disponibles via get_published_holidays().

Politique d'échec : si la source distante des jours fériés est indisponible,
on retombe silencieusement sur la table statique, jamais d'exception à l'appelant.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

import requests
from sqlalchemy.orm import Session

from sathipasala.config import settings
from sathipasala.schemas.calendar import CalendarEntry, Holiday
from sathipasala.schemas.common import BilingualText, DayType, EventType

logger = logging.getLogger(__name__)

LUNAR_MONTH_DAYS = 29.53059
POYA_ANCHOR_DAY = 5  # 5 janvier, proche de la première pleine lune de l'année
MAX_POYA_PER_YEAR = 13

HOLIDAY_COLOR = "#e53e3e"
POYA_COLOR = "#805ad5"
POYA_TITLE = BilingualText(en="Poya Day", si="පොහොය දිනය")

DayLike = Union[date, datetime, str]

# Jours fériés publiés (source officielle reprise telle quelle).
PUBLISHED_HOLIDAYS = {
    2023: [
        ("2023-01-15", "Tamil Thai Pongal Day"),
        ("2023-02-04", "National Day"),
        ("2023-04-13", "Sinhala & Tamil New Year Eve"),
        ("2023-04-14", "Sinhala & Tamil New Year"),
        ("2023-05-01", "May Day"),
        ("2023-05-05", "Vesak Full Moon Poya Day"),
        ("2023-06-03", "Poson Full Moon Poya Day"),
        ("2023-12-25", "Christmas Day"),
    ],
    2024: [
        ("2024-01-15", "Tamil Thai Pongal Day"),
        ("2024-01-25", "Duruthu Full Moon Poya Day"),
        ("2024-02-04", "National Day"),
        ("2024-02-24", "Navam Full Moon Poya Day"),
        ("2024-03-25", "Madin Full Moon Poya Day"),
        ("2024-04-13", "Day prior to Sinhala & Tamil New Year Day"),
        ("2024-04-14", "Sinhala & Tamil New Year Day"),
        ("2024-04-23", "Bak Full Moon Poya Day"),
        ("2024-05-01", "May Day"),
        ("2024-05-23", "Vesak Full Moon Poya Day"),
        ("2024-06-21", "Poson Full Moon Poya Day"),
        ("2024-07-21", "Esala Full Moon Poya Day"),
        ("2024-08-19", "Nikini Full Moon Poya Day"),
        ("2024-09-17", "Binara Full Moon Poya Day"),
        ("2024-10-17", "Vap Full Moon Poya Day"),
        ("2024-11-01", "Deepavali"),
        ("2024-11-15", "Il Full Moon Poya Day"),
        ("2024-12-15", "Unduvap Full Moon Poya Day"),
        ("2024-12-25", "Christmas Day"),
    ],
    2025: [
        ("2025-01-14", "Tamil Thai Pongal Day"),
        ("2025-01-25", "Duruthu Full Moon Poya Day"),
        ("2025-02-04", "National Day"),
        ("2025-02-23", "Navam Full Moon Poya Day"),
        ("2025-03-24", "Madin Full Moon Poya Day"),
        ("2025-04-13", "Day prior to Sinhala & Tamil New Year Day"),
        ("2025-04-14", "Sinhala & Tamil New Year Day"),
        ("2025-04-23", "Bak Full Moon Poya Day"),
        ("2025-05-01", "May Day"),
        ("2025-05-22", "Vesak Full Moon Poya Day"),
        ("2025-06-20", "Poson Full Moon Poya Day"),
        ("2025-07-20", "Esala Full Moon Poya Day"),
        ("2025-08-18", "Nikini Full Moon Poya Day"),
        ("2025-09-17", "Binara Full Moon Poya Day"),
        ("2025-10-16", "Vap Full Moon Poya Day"),
        ("2025-11-14", "Il Full Moon Poya Day"),
        ("2025-12-14", "Unduvap Full Moon Poya Day"),
        ("2025-12-25", "Christmas Day"),
    ],
}

# Jours fériés à date fixe, valables chaque année.
STATIC_HOLIDAYS = [
    ("01-01", "New Year's Day"),
    ("02-04", "National Day"),
    ("05-01", "May Day"),
    ("12-25", "Christmas Day"),
]


class HolidaySourceUnavailable(Exception):
    """La source distante des jours fériés n'a pas fourni de données exploitables."""


@dataclass
class CalendarYear:
    """Jours fériés et jours de Poya connus pour une année."""
    year: int
    holidays: List[Holiday] = field(default_factory=list)
    poya_days: List[str] = field(default_factory=list)

    def classify(self, day: DayLike) -> DayType:
        return classify_date(day, self.holidays, self.poya_days)

    def is_class_day(self, day: DayLike) -> bool:
        return is_class_day(day, self.poya_days)


def format_day(day: DayLike) -> str:
    """Représentation YYYY-MM-DD utilisée pour toutes les comparaisons."""
    if isinstance(day, datetime):
        return day.date().isoformat()
    if isinstance(day, date):
        return day.isoformat()
    return date.fromisoformat(day).isoformat()


def get_static_holidays(year: int) -> List[Holiday]:
    return [
        Holiday(date=date.fromisoformat(f"{year}-{month_day}"), name=name)
        for month_day, name in STATIC_HOLIDAYS
    ]


def get_published_holidays(year: int) -> List[Holiday]:
    """Jours fériés publiés pour l'année, ou liste vide si l'année n'est pas publiée."""
    return [
        Holiday(date=date.fromisoformat(day), name=name)
        for day, name in PUBLISHED_HOLIDAYS.get(year, [])
    ]


def calculate_poya_days(year: int) -> List[str]:
    """
    Approximation des jours de Poya (pleine lune) de l'année.

    Au plus 13 dates, toutes dans l'année, espacées de 29 ou 30 jours.
    """
    anchor = date(year, 1, POYA_ANCHOR_DAY)
    poya_days = []
    for i in range(MAX_POYA_PER_YEAR):
        full_moon = anchor + timedelta(days=round(i * LUNAR_MONTH_DAYS))
        if full_moon.year > year:
            break
        poya_days.append(full_moon.isoformat())
    return poya_days


def get_poya_days(year: int) -> List[str]:
    """Jours de Poya calculés, complétés par les Poya publiés de l'année."""
    published = {
        h.date.isoformat() for h in get_published_holidays(year)
        if "poya" in h.name.lower()
    }
    return sorted(set(calculate_poya_days(year)) | published)


def _fetch_remote_holidays(year: int) -> List[Holiday]:
    url = settings.HOLIDAYS_API_URL.replace("{year}", str(year))
    response = requests.get(url, timeout=settings.HOLIDAYS_API_TIMEOUT)
    response.raise_for_status()
    payload = response.json()
    if not isinstance(payload, dict) or not payload.get("success"):
        raise HolidaySourceUnavailable(f"Réponse invalide de {url}")
    return [Holiday(**item) for item in payload.get("data") or []]


def fetch_holidays(year: int) -> List[Holiday]:
    """
    Jours fériés de l'année depuis la source configurée.

    - HOLIDAYS_API_URL défini : appel HTTP (format {success, data: [{date, name}]})
    - sinon : table publiée embarquée
    Toute erreur (réseau, timeout, HTTP, payload invalide) ou absence de données
    entraîne le repli sur get_static_holidays().
    """
    try:
        if settings.HOLIDAYS_API_URL:
            holidays = _fetch_remote_holidays(year)
        else:
            holidays = get_published_holidays(year)
        if not holidays:
            raise HolidaySourceUnavailable(f"Aucun jour férié publié pour {year}")
        return holidays
    except (requests.RequestException, HolidaySourceUnavailable, ValueError, TypeError) as exc:
        logger.warning("Jours fériés %s indisponibles (%s), repli sur la table statique", year, exc)
        return get_static_holidays(year)


def is_holiday(day: DayLike, holidays: Iterable[Holiday]) -> bool:
    formatted = format_day(day)
    return any(h.date.isoformat() == formatted for h in holidays)


def is_poya_day(day: DayLike, poya_days: Iterable[str]) -> bool:
    return format_day(day) in set(poya_days)


def is_sunday(day: DayLike) -> bool:
    return date.fromisoformat(format_day(day)).weekday() == 6


def is_class_day(day: DayLike, poya_days: Iterable[str]) -> bool:
    """Les cours ont lieu le dimanche et les jours de Poya."""
    return is_sunday(day) or is_poya_day(day, poya_days)


def classify_date(day: DayLike, holidays: Iterable[Holiday], poya_days: Iterable[str]) -> DayType:
    """Poya prioritaire sur férié, sinon jour ordinaire."""
    if is_poya_day(day, poya_days):
        return DayType.POYA
    if is_holiday(day, holidays):
        return DayType.HOLIDAY
    return DayType.ORDINARY


def build_calendar(year: int) -> CalendarYear:
    """
    Calendrier de l'année : jours fériés (avec repli) et jours de Poya.
    Les Poya de janvier de l'année suivante sont inclus pour la planification de décembre.
    """
    next_january = [d for d in get_poya_days(year + 1) if d.startswith(f"{year + 1}-01")]
    return CalendarYear(
        year=year,
        holidays=fetch_holidays(year),
        poya_days=get_poya_days(year) + next_january,
    )


def generated_entries(calendar: CalendarYear) -> List[CalendarEntry]:
    """Entrées du calendrier générées à partir des jours fériés et des Poya."""
    entries = [
        CalendarEntry(
            date=h.date,
            end_date=h.date,
            type=EventType.HOLIDAY,
            title=BilingualText(en=h.name, si=h.name),
            color=HOLIDAY_COLOR,
            generated=True,
        )
        for h in calendar.holidays
    ]
    entries += [
        CalendarEntry(
            date=date.fromisoformat(day),
            end_date=date.fromisoformat(day),
            type=EventType.POYA,
            title=POYA_TITLE,
            color=POYA_COLOR,
            generated=True,
        )
        for day in calendar.poya_days
        if day.startswith(f"{calendar.year}-")
    ]
    return entries


def list_calendar_entries(
    db: Session,
    year: int,
    month: Optional[int] = None,
    event_type: Optional[EventType] = None,
) -> List[CalendarEntry]:
    """
    Évènements enregistrés de la période, complétés par les jours fériés et Poya
    générés qui ne sont pas déjà enregistrés (même date, même type).
    """
    # Import local pour éviter l'import circulaire avec event_service
    from sathipasala.services.event_service import get_events, to_entry

    stored = [to_entry(e, year) for e in get_events(db, year=year, month=month, event_type=event_type)]
    known = {(e.date, e.type) for e in stored}

    generated = [
        e for e in generated_entries(build_calendar(year))
        if (e.date, e.type) not in known
        and (month is None or e.date.month == month)
        and (event_type is None or e.type == event_type)
    ]
    return sorted(stored + generated, key=lambda e: (e.date, e.type.value))
