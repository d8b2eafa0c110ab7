"""
Database module

Contains both data models (schemas) and storage operations.
"""

# Export schemas
from app.database.schemas import (
    Patient,
    PatientCreate,
    PatientUpdate,
    Appointment,
    AppointmentCreate,
    AppointmentUpdate,
    Medication,
    Treatment,
    TreatmentCreate,
    TreatmentUpdate,
    DatabaseBackup,
    BackupEntry,
)

# Export storage for convenience
from app.database.storage import (
    JsonFileStore,
    StorageError,
    PATIENTS_KEY,
    APPOINTMENTS_KEY,
    TREATMENTS_KEY,
    BACKUP_HISTORY_KEY,
)

__all__ = [
    # Schemas
    "Patient",
    "PatientCreate",
    "PatientUpdate",
    "Appointment",
    "AppointmentCreate",
    "AppointmentUpdate",
    "Medication",
    "Treatment",
    "TreatmentCreate",
    "TreatmentUpdate",
    "DatabaseBackup",
    "BackupEntry",
    # Storage
    "JsonFileStore",
    "StorageError",
    "PATIENTS_KEY",
    "APPOINTMENTS_KEY",
    "TREATMENTS_KEY",
    "BACKUP_HISTORY_KEY",
]
