"""
Planificateur APScheduler pour la synchronisation quotidienne du calendrier.

Le job enregistre comme évènements les jours fériés et les jours de Poya
de l'année courante et de l'année suivante qui ne le sont pas encore.
"""

import logging
from datetime import date

from apscheduler.schedulers.background import BackgroundScheduler

from sathipasala.config import settings
from sathipasala.database import SessionLocal

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def _sync_calendar_events() -> None:
    """
    Tâche planifiée : complète les évènements générés (férié / Poya).
    Import local pour éviter les imports circulaires.
    """
    from sathipasala.services.event_service import ensure_generated_events

    current_year = date.today().year
    db = SessionLocal()
    try:
        for year in (current_year, current_year + 1):
            created = ensure_generated_events(db, year)
            logger.info("Calendrier %s : %d évènements générés ajoutés", year, created)
    except Exception as exc:
        db.rollback()
        logger.error("Erreur lors de la synchronisation du calendrier : %s", exc)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    if not settings.CALENDAR_SYNC_ENABLED:
        logger.info("Synchronisation du calendrier désactivée.")
        return
    scheduler.add_job(
        _sync_calendar_events,
        trigger="cron",
        hour=settings.CALENDAR_SYNC_HOUR,
        id="calendar_sync_daily",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler démarré : synchronisation du calendrier chaque jour à %dh.", settings.CALENDAR_SYNC_HOUR)


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
