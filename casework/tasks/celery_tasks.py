"""Celery background tasks for directory sync, submissions and verification emails"""
from celery import Celery
from casework.config import get_settings
from casework.database import SessionLocal
from casework.services.container import build_services
from typing import Any, Dict
import logging

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Initialize Celery
celery_app = Celery(
    "casework_tasks",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend
)

celery_app.conf.task_routes = {
    "casework.tasks.celery_tasks.*": {"queue": "casework"}
}

celery_app.conf.beat_schedule = {
    "reverse-contact-sync": {
        "task": "reverse_sync_task",
        "schedule": settings.reverse_sync_interval_minutes * 60.0,
    }
}


@celery_app.task(name="reverse_sync_task")
def reverse_sync_task():
    """Scheduled pull of directory edits into the family table"""
    db = SessionLocal()

    try:
        report = build_services(settings, db).reverse_sync.run()
        return {"status": "success", **report.model_dump()}

    except Exception as e:
        logger.exception("Reverse sync task failed")
        db.rollback()
        return {"status": "error", "message": str(e)}

    finally:
        db.close()


@celery_app.task(name="process_submission_task")
def process_submission_task(answers: Dict[str, Any], origin: str = ""):
    """Process a form submission outside the request cycle"""
    db = SessionLocal()

    try:
        outcome = build_services(settings, db).ingestion.process_submission(answers, origin)
        return {"status": "success", **outcome.model_dump()}

    except Exception as e:
        logger.exception(f"Submission task failed for origin '{origin}'")
        db.rollback()
        return {"status": "error", "message": str(e)}

    finally:
        db.close()


@celery_app.task(name="send_verification_emails_task")
def send_verification_emails_task():
    db = SessionLocal()

    try:
        report = build_services(settings, db).verification.send_to_all()
        return {"status": "success", **report.model_dump()}

    except Exception as e:
        logger.exception("Verification email task failed")
        db.rollback()
        return {"status": "error", "message": str(e)}

    finally:
        db.close()
