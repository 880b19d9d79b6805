"""
Service Configuration

Settings are read from the environment (prefix ``CARDIORISK_``) and from a
project-level ``.env`` file.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# ── Paths ───────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CARDIORISK_", extra="ignore")

    app_name: str = "Cardiovascular Risk Analysis API"
    app_version: str = "1.0.0"

    # ── Logging ─────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # ── Hospital shown on reports ───────────────────────────────────────
    hospital_name: str = "Demo General Hospital"
    hospital_location: str = "Mumbai, Maharashtra"

    # ── Demo account ────────────────────────────────────────────────────
    demo_email: str = "demo@hospital.com"
    demo_password: str = "demo123"
    demo_user_id: str = "demo-user-123"
    demo_patient_id: str = "DEMO001"
    demo_access_token: str = "demo-token-123"
    demo_refresh_token: str = "demo-refresh-123"

    # Seed for the jitter applied to demo biomarkers; None = unseeded
    demo_seed: Optional[int] = 42

    # ── Session persistence ─────────────────────────────────────────────
    session_file: str = str(PROJECT_ROOT / ".cardiorisk_session.json")
    session_key: str = "demo-session"

    # ── Analysis / reports ──────────────────────────────────────────────
    analysis_delay_seconds: float = 2.0
    reports_dir: str = "reports"
    # Generated reports kept downloadable; older ones are deleted
    max_stored_reports: int = 100

    # ── Backend-as-a-service constants (not contacted) ──────────────────
    baas_project_id: str = ""
    baas_anon_key: str = ""


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
