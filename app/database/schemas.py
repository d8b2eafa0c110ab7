"""
Data models for the practice records

- Stored models (Patient, Appointment, Treatment) keep unknown keys so
  imported data round-trips without loss
- Create/Update models are what callers send; ids and timestamps are
  always assigned by the data manager
- Pydantic provides automatic validation
"""
from typing import Optional, List, Literal
from datetime import datetime, date
from pydantic import BaseModel, Field, field_validator, ConfigDict


AppointmentStatus = Literal["scheduled", "completed", "cancelled"]
BackupType = Literal["manual", "pre-import-backup"]
EntityKind = Literal["patients", "appointments", "treatments"]


def _check_iso_date(value: Optional[str], field_name: str, allow_future: bool = True) -> Optional[str]:
    if not value:
        return value
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"{field_name} must be in YYYY-MM-DD format")
    if not allow_future and parsed > date.today():
        raise ValueError(f"{field_name} cannot be in the future")
    return value


def _check_time(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    try:
        datetime.strptime(value, "%H:%M")
    except ValueError:
        raise ValueError("time must be in HH:MM format")
    return value


# Patients

class PatientFields(BaseModel):
    name: str               = Field(...,  description="Patient full name")
    phone: str              = Field("",   description="Phone number")
    email: str              = Field("",   description="Email address")
    date_of_birth: str      = Field("",   description="Date of birth (format: YYYY-MM-DD)")
    address: str            = Field("",   description="Postal address")
    medical_history: str    = Field("",   description="Relevant medical history")
    allergies: str          = Field("",   description="Known allergies (free text)")
    emergency_contact: str  = Field("",   description="Emergency contact name")
    emergency_phone: str    = Field("",   description="Emergency contact phone")


class PatientCreate(PatientFields):
    """
    Patient registration payload
    """
    model_config = ConfigDict(extra="ignore")

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, value: str) -> str:
        return _check_iso_date(value, "date_of_birth", allow_future=False)


class Patient(PatientFields):
    """
    Stored patient record
    """
    model_config = ConfigDict(extra="allow")
    id: str                 = Field(...,  description="Patient unique identifier (auto-generated)")
    created_at: str         = Field(...,  description="ISO timestamp of registration")
    updated_at: str         = Field(...,  description="ISO timestamp of last change")


class PatientUpdate(BaseModel):
    """
    Patient update model (all fields optional, only provided fields are merged)
    """
    model_config = ConfigDict(extra="ignore")
    name: Optional[str]              = None
    phone: Optional[str]             = None
    email: Optional[str]             = None
    date_of_birth: Optional[str]     = None
    address: Optional[str]           = None
    medical_history: Optional[str]   = None
    allergies: Optional[str]         = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str]   = None

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, value: Optional[str]) -> Optional[str]:
        return _check_iso_date(value, "date_of_birth", allow_future=False)


# Appointments

class AppointmentFields(BaseModel):
    patient_id: str             = Field(...,  description="ID of the patient this appointment is for")
    patient_name: str           = Field("",   description="Patient name at booking time (denormalized)")
    date: str                   = Field(...,  description="Appointment date (format: YYYY-MM-DD)")
    time: str                   = Field(...,  description="Start time (format: HH:MM)")
    status: AppointmentStatus   = Field("scheduled", description="scheduled, completed or cancelled")
    type: str                   = Field("",   description="Visit type, e.g. 'Cleaning', 'Root Canal'")
    notes: str                  = Field("",   description="Free-text notes")
    duration: int               = Field(30, ge=0, description="Length in minutes")


class AppointmentCreate(AppointmentFields):
    """
    Appointment scheduling payload
    """
    model_config = ConfigDict(extra="ignore")

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str) -> str:
        return _check_iso_date(value, "date")

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)


class Appointment(AppointmentFields):
    """
    Stored appointment record

    Status transitions are not enforced: any status may be set at any time.
    """
    model_config = ConfigDict(extra="allow")
    id: str                     = Field(...,  description="Appointment unique identifier (auto-generated)")
    created_at: str             = Field(...,  description="ISO timestamp of creation")
    updated_at: str             = Field(...,  description="ISO timestamp of last change")


class AppointmentUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")
    patient_id: Optional[str]           = None
    patient_name: Optional[str]         = None
    date: Optional[str]                 = None
    time: Optional[str]                 = None
    status: Optional[AppointmentStatus] = None
    type: Optional[str]                 = None
    notes: Optional[str]                = None
    duration: Optional[int]             = Field(None, ge=0)

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: Optional[str]) -> Optional[str]:
        return _check_iso_date(value, "date")

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: Optional[str]) -> Optional[str]:
        return _check_time(value)


# Treatments

class Medication(BaseModel):
    """
    One prescribed medication on a treatment record
    """
    model_config = ConfigDict(extra="allow")
    name: str           = Field(...,  description="Medication name")
    dosage: str         = Field("",   description="Dose, e.g. '500mg'")
    frequency: str      = Field("",   description="e.g. 'Twice daily'")
    duration: str       = Field("",   description="e.g. '7 days'")
    instructions: str   = Field("",   description="Patient instructions")


class TreatmentFields(BaseModel):
    patient_id: str                 = Field(...,  description="ID of the treated patient")
    patient_name: str               = Field("",   description="Patient name at treatment time (denormalized)")
    appointment_id: str             = Field("",   description="Related appointment ID, empty when none")
    date: str                       = Field(...,  description="Treatment date (format: YYYY-MM-DD)")
    diagnosis: str                  = Field("",   description="Diagnosis")
    treatment: str                  = Field("",   description="Treatment performed (free text)")
    medications: List[Medication]   = Field(default_factory=list, description="Prescribed medications in order")
    notes: str                      = Field("",   description="Free-text notes")
    follow_up_date: str             = Field("",   description="Follow-up date (format: YYYY-MM-DD), empty when none")
    cost: float                     = Field(0, ge=0, description="Treatment cost")


class TreatmentCreate(TreatmentFields):
    """
    Treatment record payload
    """
    model_config = ConfigDict(extra="ignore")

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str) -> str:
        return _check_iso_date(value, "date")

    @field_validator("follow_up_date")
    @classmethod
    def validate_follow_up_date(cls, value: str) -> str:
        return _check_iso_date(value, "follow_up_date")


class Treatment(TreatmentFields):
    """
    Stored treatment record
    """
    model_config = ConfigDict(extra="allow")
    id: str                         = Field(...,  description="Treatment unique identifier (auto-generated)")
    created_at: str                 = Field(...,  description="ISO timestamp of creation")
    updated_at: str                 = Field(...,  description="ISO timestamp of last change")


class TreatmentUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")
    patient_id: Optional[str]               = None
    patient_name: Optional[str]             = None
    appointment_id: Optional[str]           = None
    date: Optional[str]                     = None
    diagnosis: Optional[str]                = None
    treatment: Optional[str]                = None
    medications: Optional[List[Medication]] = None
    notes: Optional[str]                    = None
    follow_up_date: Optional[str]           = None
    cost: Optional[float]                   = Field(None, ge=0)

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: Optional[str]) -> Optional[str]:
        return _check_iso_date(value, "date")

    @field_validator("follow_up_date")
    @classmethod
    def validate_follow_up_date(cls, value: Optional[str]) -> Optional[str]:
        return _check_iso_date(value, "follow_up_date")


# Backups and data management

class DatabaseBackup(BaseModel):
    """
    Point-in-time snapshot of all three collections
    """
    patients: List[Patient]             = Field(default_factory=list)
    appointments: List[Appointment]     = Field(default_factory=list)
    treatments: List[Treatment]         = Field(default_factory=list)
    export_date: str                    = Field(...,  description="ISO timestamp of the snapshot")
    version: str                        = Field(...,  description="Export format version")


class BackupEntry(BaseModel):
    """
    One entry in the capped backup history
    """
    id: str                     = Field(...,  description="Backup unique identifier")
    type: BackupType            = Field("manual", description="manual or pre-import-backup")
    date: str                   = Field(...,  description="Snapshot export date")
    patient_count: int          = Field(0)
    appointment_count: int      = Field(0)
    treatment_count: int        = Field(0)
    data: DatabaseBackup


class OperationResult(BaseModel):
    """
    Outcome of import/restore, always returned instead of raised
    """
    success: bool
    message: str


class ValidationReport(BaseModel):
    orphaned_appointments: int  = Field(0, description="Appointments whose patient no longer exists")
    orphaned_treatments: int    = Field(0, description="Treatments whose patient no longer exists")
    duplicate_patients: int     = Field(0, description="Patients whose email or phone repeats an earlier patient")


class CleanupResult(BaseModel):
    cleaned: int = Field(0, description="Total appointments and treatments removed")


class StorageStats(BaseModel):
    total_patients: int
    total_appointments: int
    total_treatments: int
    storage_used: str               = Field(...,  description="Serialized size of the collections, e.g. '1.25 KB'")
    last_backup: Optional[str]      = Field(None, description="Date of the most recent backup, null when none")


class ExportFile(BaseModel):
    """
    A generated download (JSON snapshot or CSV)
    """
    filename: str
    media_type: str
    content: str


class DashboardSummary(BaseModel):
    """
    Practice overview numbers shown on the home dashboard
    """
    total_patients: int
    new_patients_last_30_days: int
    patients_with_allergies: int
    todays_appointments: List[Appointment]  = Field(default_factory=list)
    upcoming_appointments: int
    completion_rate: int                    = Field(..., description="Percent of appointments completed")
    total_treatments: int
    treatments_this_month: int
    total_medications: int
    total_revenue: float
    monthly_revenue: float
    revenue_growth: int                     = Field(..., description="Percent change against last month")
