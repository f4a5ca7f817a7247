# field-sales/alert_client.py
import logging

import requests

import config

logger = logging.getLogger(__name__)


def _post(url: str, payload: dict, context: str):
    try:
        response = requests.post(url, json=payload, timeout=config.WEBHOOK_TIMEOUT_SECONDS)
        response.raise_for_status()
        logger.info("Successfully posted '%s' notification.", context)
    except requests.exceptions.RequestException as e:
        logger.warning("Failed to post '%s' notification: %s", context, e)


def send_dsr_run_summary(result):
    if not config.DSR_SUMMARY_WEBHOOK_URL:
        logger.info("DSR_SUMMARY_WEBHOOK_URL is not set. Skipping.")
        return

    payload = {
        "date": result.date,
        "processed": result.processed,
        "written": result.written,
        "skipped": result.skipped,
        "failed": result.failed,
        "failed_user_ids": result.failed_user_ids,
    }
    _post(config.DSR_SUMMARY_WEBHOOK_URL, payload, f"DSR summary {result.date}")


def send_target_renewal_summary(result):
    if not config.TARGET_RENEW_WEBHOOK_URL:
        logger.info("TARGET_RENEW_WEBHOOK_URL is not set. Skipping.")
        return

    payload = {
        "month": result.current_month,
        "renewed": result.renewed,
        "skipped": result.skipped,
    }
    _post(config.TARGET_RENEW_WEBHOOK_URL, payload, f"target renewal {result.current_month}")
