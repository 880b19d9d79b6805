"""
Medical Report Generator

Builds the printable cardiovascular risk report for one analysis:
- Hospital header, report id and timestamp
- Patient identity block
- Colour-coded risk tier with score and ten-year risk
- Biomarker table (values as entered)
- Risk factors, recommendations and follow-up plan
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import os
import uuid
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib.colors import HexColor, white
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, Flowable, KeepTogether
)

from cardiorisk.core.scoring import RiskTier, TIER_DISPLAY
from cardiorisk.core.store import AnalysisRecord, PatientRecord
from cardiorisk.utils import ReportGenerationError, get_logger

logger = get_logger(__name__)


# Display names and units for the biomarker table
BIOMARKER_NAMES = {
    "bmi": ("Body-Mass Index", "kg/m²"),
    "systolic_bp": ("Blood Pressure (Systolic)", "mmHg"),
    "diastolic_bp": ("Blood Pressure (Diastolic)", "mmHg"),
    "cholesterol": ("Total Cholesterol", "mg/dL"),
    "ldl": ("LDL Cholesterol", "mg/dL"),
    "hdl": ("HDL Cholesterol", "mg/dL"),
    "hba1c": ("HbA1c", "%"),
    "hs_crp": ("hs-CRP", "mg/L"),
    "smoking_status": ("Smoking Status", ""),
    "diabetes": ("Diabetes Status", ""),
    "family_history": ("Family History of CVD", ""),
    "physical_activity": ("Physical Activity", "h/week"),
    "sleep_hours": ("Sleep", "h/night"),
    "diet_quality": ("Diet Quality", ""),
    "stress_level": ("Stress Level", ""),
    "comorbidities": ("Comorbidities", ""),
}

CAVEATS = [
    "This is a screening report, not a medical diagnosis.",
    "The risk score is a weighted heuristic over the entered biomarkers, not a validated clinical model.",
    "Results should be reviewed by a qualified healthcare provider.",
]


def new_report_id(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"RPT-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:9].upper()}"


@dataclass
class MedicalReport:
    """Data container for a generated report."""
    report_id: str
    generated_at: datetime
    patient_id: str
    analysis_id: str
    risk_level: RiskTier = RiskTier.LOW
    risk_score: int = 0
    ten_year_risk: float = 0.0
    hospital_name: str = ""
    caveats: List[str] = field(default_factory=list)
    pdf_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_id": self.report_id,
            "generated_at": self.generated_at.isoformat(),
            "patient_id": self.patient_id,
            "analysis_id": self.analysis_id,
            "risk_level": self.risk_level.value,
            "risk_score": self.risk_score,
            "ten_year_risk": round(self.ten_year_risk, 1),
            "hospital_name": self.hospital_name,
            "pdf_path": self.pdf_path,
        }


class RiskIndicator(Flowable):
    """Rounded badge filled with the tier colour and label."""

    def __init__(self, tier: RiskTier, width: float = 220, height: float = 40):
        Flowable.__init__(self)
        self.tier = tier
        self.width = width
        self.height = height

    def draw(self):
        display = TIER_DISPLAY[self.tier]

        self.canv.setFillColor(HexColor(display.color))
        self.canv.roundRect(0, 0, self.width, self.height, 8, fill=1, stroke=0)

        self.canv.setFillColor(white)
        self.canv.setFont("Helvetica-Bold", 13)
        text_width = self.canv.stringWidth(display.label, "Helvetica-Bold", 13)
        self.canv.drawString((self.width - text_width) / 2, self.height / 2.5, display.label)


class MedicalReportGenerator:
    """Writes analysis reports as PDF files into ``output_dir``."""

    def __init__(self, output_dir: str = "reports"):
        self.output_dir = output_dir
        os.makedirs(output_dir, exist_ok=True)
        self._styles = getSampleStyleSheet()
        self._create_custom_styles()
        logger.info(f"MedicalReportGenerator initialized, output: {output_dir}")

    def _create_custom_styles(self):
        if 'ReportTitle' not in self._styles:
            self._styles.add(ParagraphStyle(
                name='ReportTitle',
                parent=self._styles['Title'],
                fontSize=22,
                spaceAfter=6,
                textColor=HexColor("#1E40AF"),
                alignment=TA_CENTER,
                fontName='Helvetica-Bold'
            ))

        if 'HospitalLine' not in self._styles:
            self._styles.add(ParagraphStyle(
                name='HospitalLine',
                parent=self._styles['Normal'],
                fontSize=11,
                alignment=TA_CENTER,
                textColor=HexColor("#374151"),
            ))

        if 'SectionHeader' not in self._styles:
            self._styles.add(ParagraphStyle(
                name='SectionHeader',
                parent=self._styles['Heading2'],
                fontSize=14,
                spaceBefore=18,
                spaceAfter=8,
                textColor=HexColor("#1F2937"),
                fontName='Helvetica-Bold'
            ))

        if 'ReportBody' not in self._styles:
            self._styles.add(ParagraphStyle(
                name='ReportBody',
                parent=self._styles['Normal'],
                fontSize=10.5,
                spaceAfter=6,
                leading=14,
                alignment=TA_JUSTIFY
            ))

        if 'Caveat' not in self._styles:
            self._styles.add(ParagraphStyle(
                name='Caveat',
                parent=self._styles['Normal'],
                fontSize=8.5,
                textColor=HexColor("#6B7280"),
                spaceBefore=4,
                spaceAfter=4
            ))

    def generate(
        self,
        patient: PatientRecord,
        analysis: AnalysisRecord,
        hospital_name: str = "",
    ) -> MedicalReport:
        """
        Generate the PDF report for one analysis.

        Args:
            patient: The analysed patient
            analysis: The stored analysis to print
            hospital_name: Shown in the report header

        Returns:
            MedicalReport with the PDF path filled in

        Raises:
            ReportGenerationError: if the analysis belongs to another patient
                                   or the PDF cannot be written.
        """
        if analysis.patient_id != patient.id:
            raise ReportGenerationError(
                f"Analysis {analysis.id} does not belong to patient {patient.id}",
                report_type="medical",
            )

        generated_at = datetime.now(timezone.utc)
        assessment = analysis.assessment
        report = MedicalReport(
            report_id=new_report_id(generated_at),
            generated_at=generated_at,
            patient_id=patient.id,
            analysis_id=analysis.id,
            risk_level=assessment.tier,
            risk_score=assessment.score,
            ten_year_risk=assessment.ten_year_risk,
            hospital_name=hospital_name,
            caveats=list(CAVEATS),
        )

        try:
            report.pdf_path = self._generate_pdf(report, patient, analysis)
        except OSError as e:
            logger.error(f"Report {report.report_id} could not be written: {e}")
            raise ReportGenerationError(
                f"Report generation failed: {e}",
                report_type="medical",
                details={"report_id": report.report_id},
            ) from e

        return report

    def _biomarker_rows(self, biomarkers: Dict[str, Any]) -> List[List[str]]:
        rows = [["Biomarker", "Value"]]
        for key, (name, unit) in BIOMARKER_NAMES.items():
            value = biomarkers.get(key)
            if value is None or value == "":
                continue
            rows.append([name, f"{value} {unit}".strip()])
        return rows

    def _generate_pdf(
        self,
        report: MedicalReport,
        patient: PatientRecord,
        analysis: AnalysisRecord,
    ) -> str:
        filepath = os.path.join(self.output_dir, f"{report.report_id}.pdf")
        assessment = analysis.assessment

        doc = SimpleDocTemplate(
            filepath,
            pagesize=A4,
            rightMargin=0.75*inch,
            leftMargin=0.75*inch,
            topMargin=0.75*inch,
            bottomMargin=0.75*inch
        )

        story = []

        # ===== HEADER =====
        story.append(Paragraph("Cardiovascular Risk Assessment Report", self._styles['ReportTitle']))
        if report.hospital_name:
            story.append(Paragraph(escape(report.hospital_name), self._styles['HospitalLine']))
        story.append(Paragraph(
            f"Report ID: <b>{report.report_id}</b> | "
            f"Generated: {report.generated_at.strftime('%B %d, %Y at %I:%M %p')}",
            self._styles['Caveat']
        ))
        story.append(Spacer(1, 16))

        # ===== PATIENT =====
        story.append(Paragraph("Patient Information", self._styles['SectionHeader']))
        patient_table = Table([
            ["Name", patient.full_name, "MRN", patient.mrn],
            ["Age", patient.age or "—", "Gender", patient.gender or "—"],
            ["Contact", patient.contact_no or "—", "City", patient.city or "—"],
            ["Analysis date", analysis.analysis_date.strftime('%B %d, %Y'), "Analysis ID", analysis.id],
        ], colWidths=[1.2*inch, 2.1*inch, 1.1*inch, 2.1*inch])
        patient_table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (2, 0), (2, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9.5),
            ('GRID', (0, 0), (-1, -1), 0.5, HexColor("#D1D5DB")),
            ('BACKGROUND', (0, 0), (0, -1), HexColor("#F3F4F6")),
            ('BACKGROUND', (2, 0), (2, -1), HexColor("#F3F4F6")),
        ]))
        story.append(patient_table)
        if patient.existing_conditions:
            story.append(Spacer(1, 6))
            story.append(Paragraph(
                f"<b>Existing conditions:</b> {escape(', '.join(patient.existing_conditions))}",
                self._styles['ReportBody']
            ))

        # ===== RISK =====
        story.append(Paragraph("Risk Assessment", self._styles['SectionHeader']))
        story.append(RiskIndicator(assessment.tier))
        story.append(Spacer(1, 10))
        story.append(Paragraph(
            f"Risk score: <b>{assessment.score}/100</b> &nbsp;&nbsp; "
            f"Estimated 10-year CVD risk: <b>{assessment.ten_year_risk:.1f}%</b>",
            self._styles['ReportBody']
        ))

        # ===== BIOMARKERS =====
        rows = self._biomarker_rows(analysis.biomarkers)
        if len(rows) > 1:
            elements = [Paragraph("Biomarkers", self._styles['SectionHeader'])]
            table = Table(rows, colWidths=[3.0*inch, 3.5*inch])
            table.setStyle(TableStyle([
                ('BACKGROUND', (0, 0), (-1, 0), HexColor("#1E40AF")),
                ('TEXTCOLOR', (0, 0), (-1, 0), white),
                ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
                ('FONTSIZE', (0, 0), (-1, -1), 9.5),
                ('GRID', (0, 0), (-1, -1), 0.5, HexColor("#D1D5DB")),
                ('TOPPADDING', (0, 0), (-1, -1), 6),
                ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ]))
            elements.append(table)
            story.append(KeepTogether(elements))

        # ===== FACTORS / RECOMMENDATIONS =====
        story.append(Paragraph("Risk Factors Identified", self._styles['SectionHeader']))
        if assessment.risk_factors:
            for factor in assessment.risk_factors:
                story.append(Paragraph(f"• {escape(factor)}", self._styles['ReportBody']))
        else:
            story.append(Paragraph("No significant risk factors identified", self._styles['ReportBody']))

        story.append(Paragraph("Recommendations", self._styles['SectionHeader']))
        recommendations = list(assessment.recommendations) or [
            "Maintain current healthy lifestyle"
        ]
        for i, rec in enumerate(recommendations, 1):
            story.append(Paragraph(f"{i}. {escape(rec)}", self._styles['ReportBody']))

        if analysis.follow_up:
            story.append(Paragraph("Follow-up Plan", self._styles['SectionHeader']))
            for item in analysis.follow_up:
                story.append(Paragraph(f"• {item}", self._styles['ReportBody']))

        if analysis.ecg_findings:
            story.append(Paragraph("ECG Findings", self._styles['SectionHeader']))
            for finding in analysis.ecg_findings:
                story.append(Paragraph(f"• {finding}", self._styles['ReportBody']))

        # ===== NOTES =====
        story.append(Spacer(1, 20))
        for caveat in report.caveats:
            story.append(Paragraph(f"• {caveat}", self._styles['Caveat']))
        story.append(Paragraph(
            "<b>DISCLAIMER:</b> This report is for informational purposes only and does not "
            "constitute medical advice, diagnosis, or treatment.",
            self._styles['Caveat']
        ))

        doc.build(story)
        logger.info(f"Medical report generated: {filepath}")
        return filepath
