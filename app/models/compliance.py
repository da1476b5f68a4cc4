"""
Saudization (Nitaqat) compliance models
"""
from datetime import datetime
from typing import Optional, List
from enum import Enum
from sqlmodel import Field, Column, JSON
from pydantic import model_validator

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utcnow


class NitaqatBand(str, Enum):
    PLATINUM = "platinum"
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertStatus(str, Enum):
    ACTIVE = "active"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ReportType(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"
    AUDIT = "audit"
    CUSTOM = "custom"


class ReportDestination(str, Enum):
    MHRSD = "mhrsd"
    QIWA = "qiwa"
    MUDAD = "mudad"
    GOSI = "gosi"
    OTHER = "other"


class ReportStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"
    SUBMITTED = "submitted"


# ==================== Table models ====================

class NitaqatTracking(TimestampMixin, IDMixin, SQLModelBase, table=True):
    """Current Nitaqat position per employer"""
    __tablename__ = "nitaqat_tracking"

    employer_id: str = Field(foreign_key="employers.id", unique=True, index=True)
    total_employees: int = Field(0, ge=0)
    saudi_employees: int = Field(0, ge=0)
    expat_employees: int = Field(0, ge=0)
    saudization_percentage: float = 0.0
    entity_size: str
    activity_sector: str
    nitaqat_band: str = Field(..., index=True)
    required_percentage: float = 0.0
    is_compliant: bool = False
    compliance_gap: int = Field(0, ge=0, description="Saudi hires needed to reach green")
    risk_level: str = RiskLevel.LOW.value
    estimated_penalty: int = Field(0, ge=0, description="SAR per month")
    forecast_band_3_months: Optional[str] = None
    forecast_band_6_months: Optional[str] = None
    forecast_band_12_months: Optional[str] = None
    projected_compliance_date: Optional[datetime] = None
    last_calculated: datetime = Field(default_factory=utcnow)


class WorkforceHistory(IDMixin, SQLModelBase, table=True):
    __tablename__ = "workforce_history"

    employer_id: str = Field(foreign_key="employers.id", index=True)
    snapshot_date: datetime = Field(default_factory=utcnow, index=True)
    total_employees: int = 0
    saudi_employees: int = 0
    expat_employees: int = 0
    saudization_percentage: float = 0.0
    nitaqat_band: str


class ComplianceAlert(TimestampMixin, IDMixin, SQLModelBase, table=True):
    __tablename__ = "compliance_alerts"

    employer_id: str = Field(foreign_key="employers.id", index=True)
    alert_type: str = Field(..., max_length=50, description="band_change, red_band, yellow_band, ...")
    severity: str = AlertSeverity.WARNING.value
    title: str = Field(..., max_length=255)
    message: str
    action_required: Optional[str] = None
    status: str = Field(AlertStatus.ACTIVE.value, index=True)
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None


class ComplianceReport(TimestampMixin, IDMixin, SQLModelBase, table=True):
    __tablename__ = "compliance_reports"

    employer_id: str = Field(foreign_key="employers.id", index=True)
    report_type: str = ReportType.MONTHLY.value
    period_start: datetime
    period_end: datetime
    submitted_to: str = ReportDestination.MHRSD.value
    status: str = Field(ReportStatus.PENDING.value, index=True)
    error_message: Optional[str] = None
    report_data: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    report_content: Optional[str] = Field(None, description="Report body (Markdown)")
    reference_number: Optional[str] = Field(None, max_length=100)
    submitted_at: Optional[datetime] = None


# ==================== Request schemas ====================

class WorkforceUpdate(SQLModelBase):
    total_employees: int = Field(..., ge=0)
    saudi_employees: int = Field(..., ge=0)
    activity_sector: str = Field(..., min_length=1, max_length=100)

    @model_validator(mode="after")
    def check_counts(self):
        if self.saudi_employees > self.total_employees:
            raise ValueError("saudi_employees cannot exceed total_employees")
        return self


class HiringSimulation(SQLModelBase):
    saudi_hires: int = Field(0, ge=0)
    expat_hires: int = Field(0, ge=0)
    saudi_terminations: int = Field(0, ge=0)
    expat_terminations: int = Field(0, ge=0)


class ReportCreate(SQLModelBase):
    employer_id: str
    report_type: ReportType = ReportType.MONTHLY
    period_start: datetime
    period_end: datetime
    submitted_to: ReportDestination = ReportDestination.MHRSD

    @model_validator(mode="after")
    def check_period(self):
        if self.period_end < self.period_start:
            raise ValueError("period_end must not precede period_start")
        return self


# ==================== Response schemas ====================

class NitaqatResponse(TimestampResponse):
    employer_id: str
    total_employees: int
    saudi_employees: int
    expat_employees: int
    saudization_percentage: float
    entity_size: str
    activity_sector: str
    nitaqat_band: str
    required_percentage: float
    is_compliant: bool
    compliance_gap: int
    risk_level: str
    estimated_penalty: int
    forecast_band_3_months: Optional[str]
    forecast_band_6_months: Optional[str]
    forecast_band_12_months: Optional[str]
    projected_compliance_date: Optional[datetime]
    last_calculated: datetime


class WorkforceHistoryResponse(SQLModelBase):
    id: str
    snapshot_date: datetime
    total_employees: int
    saudi_employees: int
    expat_employees: int
    saudization_percentage: float
    nitaqat_band: str


class ComplianceAlertResponse(TimestampResponse):
    employer_id: str
    alert_type: str
    severity: str
    title: str
    message: str
    action_required: Optional[str]
    status: str
    acknowledged_at: Optional[datetime]
    resolved_at: Optional[datetime]


class ComplianceReportResponse(TimestampResponse):
    employer_id: str
    report_type: str
    period_start: datetime
    period_end: datetime
    submitted_to: str
    status: str
    error_message: Optional[str]
    report_data: Optional[dict]
    report_content: Optional[str]
    reference_number: Optional[str]
    submitted_at: Optional[datetime]


class ComplianceReportListResponse(TimestampResponse):
    employer_id: str
    report_type: str
    period_start: datetime
    period_end: datetime
    status: str
    reference_number: Optional[str]
