"""
Cardiovascular Risk Analysis - FastAPI Application

Main application entry point with API endpoints for:
- Sign-in / sign-out for the demo workspace
- Patient registration and history
- Biomarker risk scoring and stored analyses
- Dashboard summary
- Printable report generation (PDF + QR download link)
"""
from collections import OrderedDict
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import io
import os
import socket

import qrcode
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, StreamingResponse
from starlette.concurrency import run_in_threadpool

from cardiorisk.config import Settings, get_settings
from cardiorisk.core.auth import (
    AuthenticatedSession,
    DemoSession,
    Session,
    SessionManager,
    SessionStorage,
    parse_bearer,
    resolve_session,
)
from cardiorisk.core.reports import MedicalReportGenerator
from cardiorisk.core.scoring import RiskScoringEngine
from cardiorisk.models import (
    AnalysisRequest,
    BiomarkerInput,
    HealthResponse,
    PatientInput,
    ReportRequest,
    ReportResponse,
    RiskScoreResponse,
    SignInRequest,
    SignUpRequest,
)
from cardiorisk.services import AnalysisService
from cardiorisk.utils import CardioRiskError, NotFoundError, get_logger, setup_logging

logger = get_logger(__name__)


# ---- Application Lifespan ----

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Restore a persisted demo session on startup."""
    await app.state.session_manager.restore()
    logger.info("API ready to accept requests")
    yield
    logger.info("Cardiovascular Risk Analysis API shut down.")


# ---- Dependencies ----

def get_session(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> Session:
    settings: Settings = request.app.state.settings
    return resolve_session(parse_bearer(authorization), settings.demo_access_token)


def get_service(request: Request, session: Session = Depends(get_session)) -> AnalysisService:
    manager: SessionManager = request.app.state.session_manager
    settings: Settings = request.app.state.settings
    return AnalysisService(
        repository=manager.repository_for(session),
        analysis_delay=settings.analysis_delay_seconds,
    )


# ---- Utility Functions ----

def _get_local_ip():
    """Get the local IP address of the server on the network."""
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        # Doesn't need to be reachable
        s.connect(("8.8.8.8", 80))
        ip = s.getsockname()[0]
        s.close()
        return ip
    except OSError:
        return "127.0.0.1"


def create_app(
    settings: Optional[Settings] = None,
    session_manager: Optional[SessionManager] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Overrides the environment-derived settings.
        session_manager: Pre-built manager (tests inject one with an
                         isolated store and storage file).
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(
        title=settings.app_name,
        description="Biomarker-based cardiovascular risk scoring with a demo patient store",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.session_manager = session_manager or SessionManager(
        settings, storage=SessionStorage(settings.session_file)
    )
    app.state.engine = RiskScoringEngine()
    app.state.report_generator = MedicalReportGenerator(output_dir=settings.reports_dir)
    app.state.reports = OrderedDict()
    app.state.started_at = datetime.now()

    @app.exception_handler(CardioRiskError)
    async def cardiorisk_error_handler(request: Request, exc: CardioRiskError):
        logger.warning(f"{request.method} {request.url.path} -> {exc.code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    def _remember_report(report_id: str, pdf_path: str) -> None:
        reports: OrderedDict = app.state.reports
        reports[report_id] = pdf_path
        while len(reports) > settings.max_stored_reports:
            old_id, old_path = reports.popitem(last=False)
            try:
                os.remove(old_path)
            except OSError as e:
                logger.warning(f"Could not remove evicted report {old_id}: {e}")
            else:
                logger.debug(f"Evicted report {old_id}")

    def _health() -> HealthResponse:
        manager: SessionManager = app.state.session_manager
        return HealthResponse(
            status="healthy",
            version=settings.app_version,
            timestamp=datetime.now().isoformat(),
            uptime_seconds=(datetime.now() - app.state.started_at).total_seconds(),
            demo_session_active=manager.demo_active,
            store=manager.demo_repository.counts(),
        )

    # ---- Health ----

    @app.get("/", response_model=HealthResponse, tags=["Health"])
    async def root():
        """API root - health check."""
        return _health()

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return _health()

    # ---- Auth ----

    @app.post("/api/v1/auth/signin", tags=["Auth"])
    async def sign_in(body: SignInRequest):
        result = await app.state.session_manager.sign_in(body.email, body.password)
        return result.to_dict()

    @app.post("/api/v1/auth/signup", tags=["Auth"])
    async def sign_up(body: SignUpRequest):
        return await app.state.session_manager.sign_up(
            body.email, body.password, body.hospital_name, body.location
        )

    @app.post("/api/v1/auth/signout", tags=["Auth"])
    async def sign_out(session: Session = Depends(get_session)):
        match session:
            case DemoSession():
                await app.state.session_manager.sign_out()
            case AuthenticatedSession():
                logger.info("Backend session signed out; demo workspace untouched")
        return {"status": "signed_out"}

    # ---- Risk scoring ----

    @app.post("/api/v1/risk/score", response_model=RiskScoreResponse, tags=["Risk"])
    async def score_biomarkers(biomarkers: BiomarkerInput):
        """
        Score a biomarker form without storing anything.
        """
        assessment = app.state.engine.assess(biomarkers.model_dump(exclude_none=True))
        return RiskScoreResponse(**assessment.to_dict())

    @app.get("/api/v1/risk/tiers", tags=["Risk"])
    async def list_tiers():
        """Tier thresholds with their display colour and label."""
        return {"tiers": RiskScoringEngine.tier_table(), "rules": RiskScoringEngine.rules()}

    # ---- Patients ----

    @app.get("/api/v1/patients", tags=["Patients"])
    async def list_patients(service: AnalysisService = Depends(get_service)):
        patients = await service.list_patients()
        return {"patients": [p.to_dict() for p in patients]}

    @app.post("/api/v1/patients", tags=["Patients"])
    async def create_patient(body: PatientInput, service: AnalysisService = Depends(get_service)):
        patient = await service.register_patient(body.model_dump())
        return {"patient": patient.to_dict()}

    @app.get("/api/v1/patients/{patient_id}/history", tags=["Patients"])
    async def patient_history(patient_id: str, service: AnalysisService = Depends(get_service)):
        history = await service.repository.get_patient_history(patient_id)
        return history.to_dict()

    # ---- Analyses ----

    @app.post("/api/v1/analyses", tags=["Analyses"])
    async def create_analysis(body: AnalysisRequest, service: AnalysisService = Depends(get_service)):
        """
        Run a risk analysis for a registered patient and store the result.
        """
        try:
            analysis = await service.run_analysis(
                body.patient_id, body.biomarkers.model_dump(exclude_none=True)
            )
        except CardioRiskError:
            raise
        except Exception as e:
            logger.error(f"Analysis failed: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Analysis failed")
        return {"analysis": analysis.to_dict()}

    @app.get("/api/v1/analyses/{analysis_id}", tags=["Analyses"])
    async def get_analysis(analysis_id: str, service: AnalysisService = Depends(get_service)):
        analysis = await service.repository.get_analysis(analysis_id)
        return {"analysis": analysis.to_dict()}

    @app.get("/api/v1/dashboard", tags=["Analyses"])
    async def dashboard(service: AnalysisService = Depends(get_service)):
        return await service.dashboard_summary()

    # ---- Reports ----

    @app.post("/api/v1/reports/generate", response_model=ReportResponse, tags=["Reports"])
    async def generate_report(body: ReportRequest, service: AnalysisService = Depends(get_service)):
        """
        Generate the printable PDF report for a stored analysis.
        """
        analysis = await service.repository.get_analysis(body.analysis_id)
        history = await service.repository.get_patient_history(analysis.patient_id)

        try:
            report = await run_in_threadpool(
                app.state.report_generator.generate,
                patient=history.patient,
                analysis=analysis,
                hospital_name=settings.hospital_name,
            )
        except CardioRiskError:
            raise
        except Exception as e:
            logger.error(f"Report generation failed: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail="Report generation failed")

        _remember_report(report.report_id, report.pdf_path)

        return ReportResponse(
            report_id=report.report_id,
            analysis_id=report.analysis_id,
            patient_id=report.patient_id,
            pdf_path=report.pdf_path or "",
            generated_at=report.generated_at.isoformat(),
        )

    @app.get("/api/v1/reports/{report_id}/download", tags=["Reports"])
    async def download_report(report_id: str):
        """
        Download a generated PDF report.
        """
        pdf_path = app.state.reports.get(report_id)
        if not pdf_path or not os.path.exists(pdf_path):
            raise NotFoundError("Report not found", resource="report", resource_id=report_id)

        return FileResponse(
            path=pdf_path,
            media_type="application/pdf",
            filename=f"{report_id}.pdf"
        )

    @app.get("/api/v1/reports/{report_id}/qr", tags=["Reports"])
    async def get_report_qr(report_id: str, request: Request):
        """
        QR code (PNG) linking to the report download, addressed with the
        host the caller used so a phone on the same network can follow it.
        """
        if report_id not in app.state.reports:
            raise NotFoundError("Report not found", resource="report", resource_id=report_id)

        host_header = request.headers.get("host", "")
        if host_header and not host_header.startswith(("localhost", "127.0.0.1")):
            download_url = f"http://{host_header}/api/v1/reports/{report_id}/download"
        else:
            download_url = f"http://{_get_local_ip()}:8000/api/v1/reports/{report_id}/download"

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(download_url)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        img_byte_arr = io.BytesIO()
        img.save(img_byte_arr, format='PNG')
        img_byte_arr.seek(0)

        return StreamingResponse(img_byte_arr, media_type="image/png")

    return app


app = create_app()


# ---- Run with uvicorn ----
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
