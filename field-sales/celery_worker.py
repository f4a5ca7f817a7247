# field-sales/celery_worker.py
import re
from typing import Optional

from celery import Celery
from celery.schedules import crontab
from celery.utils.log import get_task_logger

import alert_client
import config
from database import SessionLocal
from dsr import run_dsr_compiler
from targets import renew_targets

logger = get_task_logger(__name__)


def parse_azure_redis_url(azure_url: str) -> str:
    if not azure_url or not azure_url.startswith('redis-'): return azure_url
    try:
        host, params = azure_url.split(',', 1)
        password_match = re.search(r'password=([^,]+)', params)
        password = password_match.group(1) if password_match else ''
        return f"rediss://:{password}@{host}?ssl_cert_reqs=CERT_NONE"
    except (ValueError, AttributeError):
        logger.warning("Could not parse Azure Redis URL, falling back to original value.")
        return azure_url


parsed_redis_url = parse_azure_redis_url(config.REDIS_URL)
celery_app = Celery("tasks", broker=parsed_redis_url, backend=parsed_redis_url)
celery_app.conf.timezone = config.BUSINESS_TIMEZONE_NAME
celery_app.conf.enable_utc = True
celery_app.conf.beat_schedule = {
    "compile-dsr-reports": {
        "task": "celery_worker.compile_dsr_reports",
        "schedule": crontab(**config.SCHEDULES["compile-dsr-reports"]),
    },
    "target-auto-renew": {
        "task": "celery_worker.target_auto_renew",
        "schedule": crontab(**config.SCHEDULES["target-auto-renew"]),
    },
}


@celery_app.task(name="celery_worker.compile_dsr_reports")
def compile_dsr_reports(date: Optional[str] = None):
    logger.info("Running scheduled task: compiling DSR reports...")
    db = SessionLocal()
    try:
        result = run_dsr_compiler(db, date)
    finally:
        db.close()

    alert_client.send_dsr_run_summary(result)
    return result.model_dump()


@celery_app.task(name="celery_worker.target_auto_renew")
def target_auto_renew():
    logger.info("Running scheduled task: auto-renewing targets...")
    db = SessionLocal()
    try:
        result = renew_targets(db)
    finally:
        db.close()

    alert_client.send_target_renewal_summary(result)
    return result.model_dump()
