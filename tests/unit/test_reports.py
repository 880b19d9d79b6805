"""
Unit Tests for Report Generation

Tests for the printable PDF report of a stored analysis.
"""
import os
import re

import pytest

from cardiorisk.core.reports import MedicalReport, MedicalReportGenerator
from cardiorisk.core.reports.medical_report import new_report_id
from cardiorisk.core.scoring import RiskTier
from cardiorisk.utils import ReportGenerationError


@pytest.fixture
def generator(tmp_path) -> MedicalReportGenerator:
    return MedicalReportGenerator(output_dir=str(tmp_path / "reports"))


@pytest.fixture
async def high_risk_analysis(repository, patient_form, full_risk_form):
    patient = await repository.create_patient(patient_form)
    analysis = await repository.create_analysis(patient.id, full_risk_form)
    return patient, analysis


class TestMedicalReportGenerator:
    """Tests for MedicalReportGenerator."""

    def test_generator_creates_output_dir(self, tmp_path):
        output_dir = tmp_path / "nested" / "reports"
        MedicalReportGenerator(output_dir=str(output_dir))
        assert output_dir.is_dir()

    def test_report_id_format(self):
        assert re.fullmatch(r"RPT-\d+-[0-9A-F]{9}", new_report_id())

    @pytest.mark.asyncio
    async def test_generate_pdf(self, generator, high_risk_analysis):
        patient, analysis = high_risk_analysis

        report = generator.generate(patient, analysis, hospital_name="Demo General Hospital")

        assert isinstance(report, MedicalReport)
        assert report.patient_id == patient.id
        assert report.analysis_id == analysis.id
        assert report.risk_level == RiskTier.HIGH
        assert report.risk_score == 100
        assert report.caveats
        assert report.generated_at.tzinfo is not None

        assert report.pdf_path is not None
        assert os.path.exists(report.pdf_path)
        assert report.pdf_path.endswith(f"{report.report_id}.pdf")
        with open(report.pdf_path, "rb") as f:
            assert f.read(4) == b"%PDF"

    @pytest.mark.asyncio
    async def test_generate_low_risk_without_factors(self, generator, repository, patient_form):
        patient = await repository.create_patient({**patient_form, "existingConditions": []})
        analysis = await repository.create_analysis(patient.id, {})

        report = generator.generate(patient, analysis)

        assert report.risk_level == RiskTier.LOW
        assert os.path.getsize(report.pdf_path) > 0

    @pytest.mark.asyncio
    async def test_markup_characters_in_input(self, generator, repository, patient_form):
        patient = await repository.create_patient(
            {**patient_form, "existingConditions": ["<none> & other"]}
        )
        analysis = await repository.create_analysis(patient.id, {"bmi": "<32>"})

        report = generator.generate(patient, analysis, hospital_name="St. <Mary> & Co")
        assert os.path.exists(report.pdf_path)

    @pytest.mark.asyncio
    async def test_reports_have_unique_ids(self, generator, high_risk_analysis):
        patient, analysis = high_risk_analysis
        first = generator.generate(patient, analysis)
        second = generator.generate(patient, analysis)
        assert first.report_id != second.report_id

    @pytest.mark.asyncio
    async def test_patient_mismatch_rejected(self, generator, repository, high_risk_analysis, patient_form):
        _, analysis = high_risk_analysis
        other = await repository.create_patient({**patient_form, "firstName": "Other"})

        with pytest.raises(ReportGenerationError) as exc_info:
            generator.generate(other, analysis)
        assert exc_info.value.code == "REPORT_ERROR"

    @pytest.mark.asyncio
    async def test_unwritable_output_dir(self, generator, high_risk_analysis, tmp_path):
        patient, analysis = high_risk_analysis
        generator.output_dir = str(tmp_path / "missing" / "dir")

        with pytest.raises(ReportGenerationError, match="Report generation failed"):
            generator.generate(patient, analysis)

    @pytest.mark.asyncio
    async def test_report_to_dict(self, generator, high_risk_analysis):
        patient, analysis = high_risk_analysis
        data = generator.generate(patient, analysis, hospital_name="Demo General Hospital").to_dict()

        assert data["risk_level"] == "high"
        assert data["ten_year_risk"] == 30.0
        assert data["hospital_name"] == "Demo General Hospital"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
