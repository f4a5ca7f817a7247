# field-sales/config.py

"""
Central configuration for the Field Sales DSR service.
-- Business constants, schedules and environment settings --
"""
import os
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

# --- Environment ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./field_sales.db")
REDIS_URL = os.getenv("REDIS_URL")
DSR_SUMMARY_WEBHOOK_URL = os.getenv("DSR_SUMMARY_WEBHOOK_URL")
TARGET_RENEW_WEBHOOK_URL = os.getenv("TARGET_RENEW_WEBHOOK_URL")

# --- Business Timezone ---
# Every business date boundary is IST, wherever the rep happens to be.
BUSINESS_TIMEZONE_NAME = "Asia/Kolkata"
BUSINESS_TZ = ZoneInfo(BUSINESS_TIMEZONE_NAME)

# --- Catalogs and Account Types ---
CATALOGS = ("Fine Decor", "Artvio", "Woodrica", "Artis")
ACCOUNT_TYPES = ("dealer", "architect", "OEM")

# --- Attendance ---
CHECK_IN = "check_in"
CHECK_OUT = "check_out"

# --- DSR Statuses ---
DSR_STATUS_APPROVED = "approved"
DSR_STATUS_PENDING = "pending"
DSR_STATUS_NEEDS_REVISION = "needs_revision"
DSR_REVIEW_STATUSES = (DSR_STATUS_APPROVED, DSR_STATUS_NEEDS_REVISION)

# --- Users ---
REP_ROLE = "rep"

# --- Schedules (crontab fields, evaluated in BUSINESS_TIMEZONE_NAME) ---
SCHEDULES = {
    "compile-dsr-reports": {"minute": "0", "hour": "23"},
    "target-auto-renew": {"minute": "1", "hour": "0", "day_of_month": "1"},
}

WEBHOOK_TIMEOUT_SECONDS = 5
