# ipd_billing/core/config.py
import os
from typing import List
from pydantic import BaseModel
from dotenv import load_dotenv
from urllib.parse import quote_plus
from pathlib import Path

load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)) or default)


class Settings(BaseModel):
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "IPD Billing Ledger")
    API_V1_STR: str = os.getenv("API_V1_STR", "/api")

    # CORS (env takes priority)
    BACKEND_CORS_ORIGINS: List[str] = _split_csv(
        os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ))

    # ---------- MySQL ----------
    MYSQL_HOST: str = os.getenv("MYSQL_HOST", "localhost")
    MYSQL_PORT: int = int(os.getenv("MYSQL_PORT", "3306"))
    MYSQL_USER: str = os.getenv("MYSQL_USER", "ipd_billing")
    MYSQL_PASSWORD: str = os.getenv("MYSQL_PASSWORD", "")
    MYSQL_DB: str = os.getenv("MYSQL_DB", "ipd_billing")
    DB_DRIVER: str = os.getenv("DB_DRIVER", "pymysql")

    # DATABASE_URL wins over the MySQL parts (sqlite for local runs / tests)
    SQLALCHEMY_DATABASE_URI: str = os.getenv("DATABASE_URL") or (
        f"mysql+{DB_DRIVER}://{quote_plus(MYSQL_USER)}:{quote_plus(MYSQL_PASSWORD)}"
        f"@{MYSQL_HOST}:{MYSQL_PORT}/{MYSQL_DB}")

    # ---------- Hospital ----------
    TIMEZONE: str = os.getenv("TIMEZONE", "Asia/Kolkata")
    CURRENCY_NAME: str = os.getenv("CURRENCY_NAME", "Rupees")

    # ---------- Identifiers ----------
    UHID_PREFIX: str = os.getenv("UHID_PREFIX", "MG")
    UHID_WIDTH: int = int(os.getenv("UHID_WIDTH", "5"))
    IPD_PREFIX: str = os.getenv("IPD_PREFIX", "IPD")
    IPD_WIDTH: int = int(os.getenv("IPD_WIDTH", "4"))

    # ---------- Invoice pages (points, portrait A4) ----------
    PDF_PAGE_WIDTH: float = _env_float("PDF_PAGE_WIDTH", 595)
    PDF_PAGE_HEIGHT: float = _env_float("PDF_PAGE_HEIGHT", 842)
    PDF_MARGIN_TOP: float = _env_float("PDF_MARGIN_TOP", 120)
    PDF_MARGIN_BOTTOM: float = _env_float("PDF_MARGIN_BOTTOM", 80)
    PDF_MARGIN_SIDE: float = _env_float("PDF_MARGIN_SIDE", 20)
    LETTERHEAD_PATH: str = os.getenv("LETTERHEAD_PATH", "letterhead.png")

    # ---------- File storage ----------
    STORAGE_DIR: str = os.getenv("STORAGE_DIR", "./media")

    # ---------- Logging ----------
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "")


settings = Settings()

Path(settings.STORAGE_DIR).resolve().mkdir(parents=True, exist_ok=True)
