"""
Integration Tests for the FastAPI Backend

Tests for API endpoints: sign-in, patients, analyses, dashboard, reports.
Uses async httpx for ASGI app testing.
"""
import os

import pytest
import httpx

from cardiorisk.main import create_app


DEMO_AUTH = {"Authorization": "Bearer demo-token-123"}
OTHER_AUTH = {"Authorization": "Bearer some-backend-token"}


@pytest.fixture
def app(settings, session_manager):
    return create_app(settings=settings, session_manager=session_manager)


@pytest.fixture
async def async_client(app):
    """Create async test client."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client


@pytest.fixture
async def signed_in_client(async_client):
    """Client with the demo workspace signed in and seeded."""
    response = await async_client.post(
        "/api/v1/auth/signin",
        json={"email": "demo@hospital.com", "password": "demo123"},
    )
    assert response.status_code == 200
    return async_client


@pytest.mark.asyncio
class TestHealthEndpoints:
    """Tests for health check endpoints."""

    async def test_root_endpoint(self, async_client):
        response = await async_client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert data["demo_session_active"] is False

    async def test_health_reports_store(self, signed_in_client):
        response = await signed_in_client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["demo_session_active"] is True
        assert data["store"] == {"patients": 3, "analyses": 9}

    async def test_openapi_docs(self, async_client):
        response = await async_client.get("/docs")
        assert response.status_code == 200


@pytest.mark.asyncio
class TestAuthEndpoints:
    """Tests for sign-in, sign-up and sign-out."""

    async def test_demo_sign_in(self, async_client):
        response = await async_client.post(
            "/api/v1/auth/signin",
            json={"email": "demo@hospital.com", "password": "demo123"},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["session"] == {
            "access_token": "demo-token-123",
            "refresh_token": "demo-refresh-123",
        }
        assert data["user"]["id"] == "demo-user-123"
        assert data["user_data"]["patient_id"] == "DEMO001"

    async def test_wrong_password(self, async_client):
        response = await async_client.post(
            "/api/v1/auth/signin",
            json={"email": "demo@hospital.com", "password": "nope"},
        )
        assert response.status_code == 401
        assert response.json()["error"] == "AUTHENTICATION_ERROR"

    async def test_sign_up_demo_email(self, async_client):
        response = await async_client.post(
            "/api/v1/auth/signup",
            json={"email": "demo@hospital.com", "password": "x", "hospitalName": "H", "location": "L"},
        )
        assert response.status_code == 401

    async def test_sign_up_without_backend(self, async_client):
        response = await async_client.post(
            "/api/v1/auth/signup",
            json={"email": "new@hospital.com", "password": "x"},
        )
        assert response.status_code == 502
        assert response.json()["error"] == "BACKEND_ERROR"

    async def test_sign_out_revokes_demo_token(self, signed_in_client):
        response = await signed_in_client.post("/api/v1/auth/signout", headers=DEMO_AUTH)
        assert response.status_code == 200
        assert response.json() == {"status": "signed_out"}

        response = await signed_in_client.get("/api/v1/patients", headers=DEMO_AUTH)
        assert response.status_code == 401

    async def test_sign_out_requires_token(self, signed_in_client):
        response = await signed_in_client.post("/api/v1/auth/signout")
        assert response.status_code == 401

        response = await signed_in_client.get("/api/v1/patients", headers=DEMO_AUTH)
        assert response.status_code == 200
        assert len(response.json()["patients"]) == 3

    async def test_backend_sign_out_keeps_demo_workspace(self, signed_in_client):
        response = await signed_in_client.post("/api/v1/auth/signout", headers=OTHER_AUTH)
        assert response.status_code == 200
        assert response.json() == {"status": "signed_out"}

        response = await signed_in_client.get("/api/v1/patients", headers=DEMO_AUTH)
        assert response.status_code == 200
        assert len(response.json()["patients"]) == 3

        response = await signed_in_client.get("/health")
        assert response.json()["demo_session_active"] is True

    async def test_missing_token(self, signed_in_client):
        response = await signed_in_client.get("/api/v1/patients")
        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized"

    async def test_demo_token_before_sign_in(self, async_client):
        response = await async_client.get("/api/v1/patients", headers=DEMO_AUTH)
        assert response.status_code == 401


@pytest.mark.asyncio
class TestRiskEndpoints:
    """Tests for stateless scoring."""

    async def test_score_full_form(self, async_client, full_risk_form):
        response = await async_client.post("/api/v1/risk/score", json=full_risk_form)
        assert response.status_code == 200

        data = response.json()
        assert data["risk_score"] == 100
        assert data["raw_score"] == 110
        assert data["risk_level"] == "high"
        assert data["risk_color"] == "#EF4444"
        assert data["ten_year_risk"] == 30.0
        assert len(data["risk_factors"]) == 6
        assert len(data["recommendations"]) == 5

    async def test_score_empty_form(self, async_client):
        response = await async_client.post("/api/v1/risk/score", json={})
        assert response.status_code == 200

        data = response.json()
        assert data["risk_score"] == 0
        assert data["risk_level"] == "low"
        assert data["risk_factors"] == []

    async def test_score_malformed_value(self, async_client):
        response = await async_client.post(
            "/api/v1/risk/score", json={"bmi": "abc", "smokingStatus": "current"}
        )
        assert response.status_code == 200
        assert response.json()["risk_score"] == 25

    async def test_tier_table(self, async_client):
        response = await async_client.get("/api/v1/risk/tiers")
        assert response.status_code == 200

        data = response.json()
        assert [t["tier"] for t in data["tiers"]] == ["low", "medium", "high"]
        assert data["rules"][0] == "obesity"


@pytest.mark.asyncio
class TestPatientEndpoints:
    """Tests for patient registration and history."""

    async def test_list_demo_patients(self, signed_in_client):
        response = await signed_in_client.get("/api/v1/patients", headers=DEMO_AUTH)
        assert response.status_code == 200

        patients = response.json()["patients"]
        assert [p["id"] for p in patients] == ["PAT001", "PAT002", "PAT003"]
        assert patients[0]["mrn"] == "MRN2024001"

    async def test_create_patient(self, signed_in_client, patient_form):
        response = await signed_in_client.post("/api/v1/patients", json=patient_form, headers=DEMO_AUTH)
        assert response.status_code == 200

        patient = response.json()["patient"]
        assert patient["id"] == "PAT004"
        assert patient["mrn"].startswith("MRN")
        assert patient["first_name"] == "Priya"

        response = await signed_in_client.get("/api/v1/patients", headers=DEMO_AUTH)
        assert len(response.json()["patients"]) == 4

    async def test_create_patient_missing_fields(self, signed_in_client, patient_form):
        form = {**patient_form, "pincode": "", "city": ""}
        response = await signed_in_client.post("/api/v1/patients", json=form, headers=DEMO_AUTH)
        assert response.status_code == 400

        data = response.json()
        assert data["error"] == "VALIDATION_ERROR"
        assert data["details"]["fields"] == ["city", "pincode"]

    async def test_patient_history(self, signed_in_client):
        response = await signed_in_client.get("/api/v1/patients/PAT002/history", headers=DEMO_AUTH)
        assert response.status_code == 200

        data = response.json()
        assert data["patient"]["id"] == "PAT002"
        assert data["total_analyses"] == 3
        dates = [a["analysis_date"] for a in data["analyses"]]
        assert dates == sorted(dates, reverse=True)
        assert all(a["risk_level"] == "high" for a in data["analyses"])

    async def test_patient_history_not_found(self, signed_in_client):
        response = await signed_in_client.get("/api/v1/patients/PAT999/history", headers=DEMO_AUTH)
        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    async def test_backend_session_lists_nothing(self, async_client):
        response = await async_client.get("/api/v1/patients", headers=OTHER_AUTH)
        assert response.status_code == 200
        assert response.json() == {"patients": []}

    async def test_backend_session_create_patient_not_stored(self, async_client, patient_form):
        response = await async_client.post("/api/v1/patients", json=patient_form, headers=OTHER_AUTH)
        assert response.status_code == 200
        assert response.json()["patient"]["id"].startswith("PAT")

        response = await async_client.get("/api/v1/patients", headers=OTHER_AUTH)
        assert response.json() == {"patients": []}


@pytest.mark.asyncio
class TestAnalysisEndpoints:
    """Tests for stored analyses and the dashboard."""

    async def test_run_analysis(self, signed_in_client, full_risk_form):
        response = await signed_in_client.post(
            "/api/v1/analyses",
            json={"patientId": "PAT003", "biomarkers": full_risk_form},
            headers=DEMO_AUTH,
        )
        assert response.status_code == 200

        analysis = response.json()["analysis"]
        assert analysis["id"] == "ANA00010"
        assert analysis["risk_score"] == 100
        assert analysis["risk_level"] == "high"
        assert analysis["ten_year_risk"] == 30.0
        assert analysis["follow_up"]

        response = await signed_in_client.get(f"/api/v1/analyses/{analysis['id']}", headers=DEMO_AUTH)
        assert response.status_code == 200
        assert response.json()["analysis"]["patient_id"] == "PAT003"

        response = await signed_in_client.get("/api/v1/patients/PAT003/history", headers=DEMO_AUTH)
        assert response.json()["total_analyses"] == 4

    async def test_run_analysis_unknown_patient(self, signed_in_client):
        response = await signed_in_client.post(
            "/api/v1/analyses",
            json={"patientId": "PAT999", "biomarkers": {}},
            headers=DEMO_AUTH,
        )
        assert response.status_code == 404

    async def test_run_analysis_without_patient(self, signed_in_client):
        response = await signed_in_client.post(
            "/api/v1/analyses",
            json={"patientId": "", "biomarkers": {}},
            headers=DEMO_AUTH,
        )
        assert response.status_code == 400

    async def test_run_analysis_backend_session(self, async_client, full_risk_form):
        response = await async_client.post(
            "/api/v1/analyses",
            json={"patientId": "PAT001", "biomarkers": full_risk_form},
            headers=OTHER_AUTH,
        )
        assert response.status_code == 502
        assert response.json()["error"] == "BACKEND_ERROR"

    async def test_get_analysis_not_found(self, signed_in_client):
        response = await signed_in_client.get("/api/v1/analyses/ANA99999", headers=DEMO_AUTH)
        assert response.status_code == 404

    async def test_dashboard(self, signed_in_client):
        response = await signed_in_client.get("/api/v1/dashboard", headers=DEMO_AUTH)
        assert response.status_code == 200

        data = response.json()
        assert data["total_patients"] == 3
        assert data["total_analyses"] == 9
        assert data["high_risk_patients"] == 1
        assert set(data["tiers"]) == {"low", "medium", "high"}


@pytest.mark.asyncio
class TestReportEndpoints:
    """Tests for report generation and download."""

    async def test_generate_and_download(self, signed_in_client):
        response = await signed_in_client.post(
            "/api/v1/reports/generate",
            json={"analysisId": "ANA00001"},
            headers=DEMO_AUTH,
        )
        assert response.status_code == 200

        data = response.json()
        assert data["report_id"].startswith("RPT-")
        assert data["analysis_id"] == "ANA00001"
        assert data["patient_id"] == "PAT001"

        response = await signed_in_client.get(f"/api/v1/reports/{data['report_id']}/download")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    async def test_report_qr_code(self, signed_in_client):
        response = await signed_in_client.post(
            "/api/v1/reports/generate",
            json={"analysisId": "ANA00004"},
            headers=DEMO_AUTH,
        )
        report_id = response.json()["report_id"]

        response = await signed_in_client.get(f"/api/v1/reports/{report_id}/qr")
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content.startswith(b"\x89PNG")

    async def test_generate_unknown_analysis(self, signed_in_client):
        response = await signed_in_client.post(
            "/api/v1/reports/generate",
            json={"analysisId": "ANA99999"},
            headers=DEMO_AUTH,
        )
        assert response.status_code == 404

    async def test_download_unknown_report(self, async_client):
        response = await async_client.get("/api/v1/reports/RPT-0-NOTREAL00/download")
        assert response.status_code == 404

    async def test_qr_unknown_report(self, async_client):
        response = await async_client.get("/api/v1/reports/RPT-0-NOTREAL00/qr")
        assert response.status_code == 404

    async def test_old_reports_evicted(self, settings, session_manager):
        app = create_app(
            settings=settings.model_copy(update={"max_stored_reports": 1}),
            session_manager=session_manager,
        )
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        ) as client:
            await client.post(
                "/api/v1/auth/signin",
                json={"email": "demo@hospital.com", "password": "demo123"},
            )
            first = (await client.post(
                "/api/v1/reports/generate", json={"analysisId": "ANA00001"}, headers=DEMO_AUTH
            )).json()
            second = (await client.post(
                "/api/v1/reports/generate", json={"analysisId": "ANA00002"}, headers=DEMO_AUTH
            )).json()

            response = await client.get(f"/api/v1/reports/{first['report_id']}/download")
            assert response.status_code == 404
            assert not os.path.exists(first["pdf_path"])

            response = await client.get(f"/api/v1/reports/{second['report_id']}/download")
            assert response.status_code == 200
            assert list(app.state.reports) == [second["report_id"]]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
