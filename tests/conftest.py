"""
Pytest Configuration and Fixtures

Shared fixtures for the risk scoring service tests.
"""
import random
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cardiorisk.config import Settings
from cardiorisk.core.auth import SessionManager, SessionStorage
from cardiorisk.core.store import InMemoryPatientRepository, seed_demo_data


FIXED_NOW = datetime(2025, 6, 20, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now() -> datetime:
    """Clock value used by the store fixtures."""
    return FIXED_NOW


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated to a temp directory, with no analysis delay."""
    return Settings(
        session_file=str(tmp_path / "session.json"),
        reports_dir=str(tmp_path / "reports"),
        analysis_delay_seconds=0.0,
        demo_seed=1234,
        log_level="DEBUG",
    )


@pytest.fixture
def repository() -> InMemoryPatientRepository:
    """Empty demo store with a fixed clock."""
    return InMemoryPatientRepository(clock=lambda: FIXED_NOW)


@pytest.fixture
async def seeded_repository(repository) -> InMemoryPatientRepository:
    """Demo store loaded with the sample patients."""
    await seed_demo_data(repository, rng=random.Random(1234), now=FIXED_NOW)
    return repository


@pytest.fixture
def session_storage(settings) -> SessionStorage:
    return SessionStorage(settings.session_file)


@pytest.fixture
def session_manager(settings, session_storage) -> SessionManager:
    return SessionManager(
        settings,
        storage=session_storage,
        repository=InMemoryPatientRepository(user_id=settings.demo_user_id),
        rng=random.Random(settings.demo_seed),
    )


@pytest.fixture
def full_risk_form() -> dict:
    """Biomarker form that triggers every scored factor."""
    return {
        "bmi": "32",
        "systolicBp": "150",
        "diastolicBp": "95",
        "cholesterol": "250",
        "ldl": "140",
        "smokingStatus": "current",
        "diabetes": "type2",
        "familyHistory": "yes",
    }


@pytest.fixture
def patient_form() -> dict:
    """Complete registration form."""
    return {
        "firstName": "Priya",
        "lastName": "Sharma",
        "age": "58",
        "gender": "Female",
        "contactNo": "+91-98200-00000",
        "email": "priya.sharma@example.com",
        "state": "Maharashtra",
        "district": "Mumbai",
        "city": "Mumbai",
        "pincode": "400001",
        "existingConditions": ["Hypertension"],
    }
