"""
Practice data manager

Single facade over the key-value store for patients, appointments and
treatments:
- CRUD per collection, with patient deletes cascading to dependents
- JSON snapshot and per-collection CSV export
- Replace-all import with an automatic pre-import snapshot
- Capped backup history (most recent first) and restore-by-id
- Referential-integrity validation, orphan cleanup, storage statistics

Every write persists a whole collection. There are no transactions: a
failed write raises StorageError and leaves earlier writes in place.
"""
import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from app.core.config import (
    BACKUP_HISTORY_LIMIT,
    DATA_DIR,
    EXPORT_VERSION,
    STORAGE_CACHE_TTL_SECONDS,
)
from app.database.schemas import (
    Appointment,
    AppointmentCreate,
    AppointmentUpdate,
    BackupEntry,
    CleanupResult,
    DatabaseBackup,
    ExportFile,
    OperationResult,
    Patient,
    PatientCreate,
    PatientUpdate,
    StorageStats,
    Treatment,
    TreatmentCreate,
    TreatmentUpdate,
    ValidationReport,
)
from app.database.storage import (
    APPOINTMENTS_KEY,
    BACKUP_HISTORY_KEY,
    PATIENTS_KEY,
    TREATMENTS_KEY,
    JsonFileStore,
    StorageError,
)
from app.services.record_keys import canonicalize_backup

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

COLLECTION_KEYS = {
    "patients": PATIENTS_KEY,
    "appointments": APPOINTMENTS_KEY,
    "treatments": TREATMENTS_KEY,
}

INVALID_STRUCTURE_MESSAGE = "Invalid backup file structure"
IMPORT_FAILED_MESSAGE = "Failed to import data. Please check the file format."
BACKUP_NOT_FOUND_MESSAGE = "Backup not found"


class EmptyExportError(Exception):
    """
    Raised when a CSV export is requested for an empty collection
    """
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"No {kind} data to export")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


def _format_medications(medications: List[Dict[str, Any]]) -> str:
    """
    Flatten prescriptions to 'name (dosage); name (dosage)'
    """
    return "; ".join(
        f"{m.get('name', '')} ({m.get('dosage', '')})"
        for m in medications
        if isinstance(m, dict)
    )


def _csv_cell(value: Any) -> str:
    """
    Render one CSV value

    Strings containing a comma or double quote are quoted with inner quotes
    doubled; falsy values (None, "", 0, False) render as empty.
    """
    if isinstance(value, str) and ("," in value or '"' in value):
        return '"' + value.replace('"', '""') + '"'
    if not value:
        return ""
    if isinstance(value, bool):
        return "true"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return _csv_cell(json.dumps(value))
    return str(value)


class DataManager:
    """
    Owns all persisted practice data

    Construct one per process and pass it to callers; nothing else should
    write the underlying storage keys.
    """

    def __init__(
        self,
        store: JsonFileStore,
        history_limit: int = BACKUP_HISTORY_LIMIT,
        version: str = EXPORT_VERSION,
    ):
        self.store = store
        self.history_limit = history_limit
        self.version = version

    # Generic collection helpers

    def _load(self, key: str, model: Type[RecordT]) -> List[RecordT]:
        return [model.model_validate(record) for record in self.store.get_item(key)]

    def _find(self, key: str, model: Type[RecordT], record_id: str) -> Optional[RecordT]:
        for record in self.store.get_item(key):
            if record.get("id") == record_id:
                return model.model_validate(record)
        return None

    def _save(self, key: str, records: List[BaseModel]):
        self.store.set_item(key, [r.model_dump() for r in records])

    def _add(self, key: str, model: Type[RecordT], payload: BaseModel) -> RecordT:
        records = self.store.get_item(key)
        now = _now()
        record = model.model_validate({
            **payload.model_dump(),
            "id": _new_id(),
            "created_at": now,
            "updated_at": now,
        })
        records.append(record.model_dump())
        self.store.set_item(key, records)
        return record

    def _update(
        self,
        key: str,
        model: Type[RecordT],
        update_model: Type[BaseModel],
        record_id: str,
        updates: Union[BaseModel, Dict[str, Any]],
    ) -> Optional[RecordT]:
        if isinstance(updates, dict):
            updates = update_model.model_validate(updates)
        records = self.store.get_item(key)
        index = next((i for i, r in enumerate(records) if r.get("id") == record_id), None)
        if index is None:
            return None

        changes = updates.model_dump(exclude_unset=True, exclude_none=True)
        record = model.model_validate({**records[index], **changes, "updated_at": _now()})
        records[index] = record.model_dump()
        self.store.set_item(key, records)
        return record

    def _delete(self, key: str, record_id: str) -> bool:
        records = self.store.get_item(key)
        remaining = [r for r in records if r.get("id") != record_id]
        if len(remaining) == len(records):
            return False
        self.store.set_item(key, remaining)
        return True

    # Patients

    def get_patients(self) -> List[Patient]:
        return self._load(PATIENTS_KEY, Patient)

    def get_patient(self, patient_id: str) -> Optional[Patient]:
        return self._find(PATIENTS_KEY, Patient, patient_id)

    def save_patients(self, patients: List[Patient]):
        self._save(PATIENTS_KEY, patients)

    def add_patient(self, patient: PatientCreate) -> Patient:
        return self._add(PATIENTS_KEY, Patient, patient)

    def update_patient(self, patient_id: str, updates: Union[PatientUpdate, Dict[str, Any]]) -> Optional[Patient]:
        return self._update(PATIENTS_KEY, Patient, PatientUpdate, patient_id, updates)

    def delete_patient(self, patient_id: str) -> bool:
        """
        Delete a patient and every appointment and treatment referencing them
        """
        if not self._delete(PATIENTS_KEY, patient_id):
            return False
        self._delete_patient_related_data(patient_id)
        return True

    def _delete_patient_related_data(self, patient_id: str):
        appointments = [
            a for a in self.store.get_item(APPOINTMENTS_KEY)
            if a.get("patient_id") != patient_id
        ]
        self.store.set_item(APPOINTMENTS_KEY, appointments)

        treatments = [
            t for t in self.store.get_item(TREATMENTS_KEY)
            if t.get("patient_id") != patient_id
        ]
        self.store.set_item(TREATMENTS_KEY, treatments)

    # Appointments

    def get_appointments(self) -> List[Appointment]:
        return self._load(APPOINTMENTS_KEY, Appointment)

    def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        return self._find(APPOINTMENTS_KEY, Appointment, appointment_id)

    def get_appointments_for_patient(self, patient_id: str) -> List[Appointment]:
        return [a for a in self.get_appointments() if a.patient_id == patient_id]

    def save_appointments(self, appointments: List[Appointment]):
        self._save(APPOINTMENTS_KEY, appointments)

    def add_appointment(self, appointment: AppointmentCreate) -> Appointment:
        return self._add(APPOINTMENTS_KEY, Appointment, appointment)

    def update_appointment(
        self, appointment_id: str, updates: Union[AppointmentUpdate, Dict[str, Any]]
    ) -> Optional[Appointment]:
        return self._update(APPOINTMENTS_KEY, Appointment, AppointmentUpdate, appointment_id, updates)

    def delete_appointment(self, appointment_id: str) -> bool:
        return self._delete(APPOINTMENTS_KEY, appointment_id)

    # Treatments

    def get_treatments(self) -> List[Treatment]:
        return self._load(TREATMENTS_KEY, Treatment)

    def get_treatment(self, treatment_id: str) -> Optional[Treatment]:
        return self._find(TREATMENTS_KEY, Treatment, treatment_id)

    def get_treatments_for_patient(self, patient_id: str) -> List[Treatment]:
        return [t for t in self.get_treatments() if t.patient_id == patient_id]

    def save_treatments(self, treatments: List[Treatment]):
        self._save(TREATMENTS_KEY, treatments)

    def add_treatment(self, treatment: TreatmentCreate) -> Treatment:
        return self._add(TREATMENTS_KEY, Treatment, treatment)

    def update_treatment(
        self, treatment_id: str, updates: Union[TreatmentUpdate, Dict[str, Any]]
    ) -> Optional[Treatment]:
        return self._update(TREATMENTS_KEY, Treatment, TreatmentUpdate, treatment_id, updates)

    def delete_treatment(self, treatment_id: str) -> bool:
        return self._delete(TREATMENTS_KEY, treatment_id)

    # Export

    def _snapshot(self) -> DatabaseBackup:
        return DatabaseBackup.model_validate({
            "patients": self.store.get_item(PATIENTS_KEY),
            "appointments": self.store.get_item(APPOINTMENTS_KEY),
            "treatments": self.store.get_item(TREATMENTS_KEY),
            "export_date": _now(),
            "version": self.version,
        })

    def export_data(self) -> DatabaseBackup:
        """
        Snapshot all collections and record it in backup history as 'manual'
        """
        backup = self._snapshot()
        self._save_backup_to_history(backup)
        return backup

    def export_to_json(self) -> ExportFile:
        backup = self.export_data()
        logger.info(
            f"Exported backup: {len(backup.patients)} patients, "
            f"{len(backup.appointments)} appointments, {len(backup.treatments)} treatments"
        )
        return ExportFile(
            filename=f"dentalcare-backup-{_today()}.json",
            media_type="application/json",
            content=json.dumps(backup.model_dump(), indent=2),
        )

    def export_to_file(self, directory: Union[str, Path]) -> Path:
        """
        Write a JSON backup into directory, return the file path
        """
        export = self.export_to_json()
        path = Path(directory) / export.filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(export.content, encoding="utf-8")
        return path

    def export_to_csv(self, kind: str) -> ExportFile:
        """
        Serialize one collection to CSV

        Columns are the keys of the first record. Treatment medications are
        flattened to a readable string, so their structured fields are not
        exported.

        Raises:
            ValueError: kind is not patients, appointments or treatments
            EmptyExportError: the collection has no records
        """
        if kind not in COLLECTION_KEYS:
            raise ValueError(f"Unknown data type: {kind}")

        rows = self.store.get_item(COLLECTION_KEYS[kind])
        if kind == "treatments":
            rows = [
                {**row, "medications": _format_medications(row.get("medications") or [])}
                for row in rows
            ]
        if not rows:
            raise EmptyExportError(kind)

        headers = list(rows[0].keys())
        lines = [",".join(headers)]
        for row in rows:
            lines.append(",".join(_csv_cell(row.get(header)) for header in headers))

        return ExportFile(
            filename=f"dentalcare-{kind}-{_today()}.csv",
            media_type="text/csv",
            content="\n".join(lines),
        )

    # Import

    def import_data(self, payload: Union[DatabaseBackup, Dict[str, Any]]) -> OperationResult:
        """
        Replace all three collections with the ones in payload

        The current state is exported first (a 'manual' history entry) and
        the same snapshot is archived again as 'pre-import-backup', so one
        import adds two history entries before anything is overwritten.
        No merging or deduplication is done.
        """
        if isinstance(payload, DatabaseBackup):
            payload = payload.model_dump()
        if not isinstance(payload, dict) or any(
            not isinstance(payload.get(field), list) for field in COLLECTION_KEYS
        ):
            logger.warning("Rejected import: missing patients, appointments or treatments")
            return OperationResult(success=False, message=INVALID_STRUCTURE_MESSAGE)

        try:
            canonical = canonicalize_backup(payload)
            patients = [Patient.model_validate(r).model_dump() for r in canonical["patients"]]
            appointments = [Appointment.model_validate(r).model_dump() for r in canonical["appointments"]]
            treatments = [Treatment.model_validate(r).model_dump() for r in canonical["treatments"]]

            snapshot = self.export_data()
            self._save_backup_to_history(snapshot, "pre-import-backup")

            self.store.set_item(PATIENTS_KEY, patients)
            self.store.set_item(APPOINTMENTS_KEY, appointments)
            self.store.set_item(TREATMENTS_KEY, treatments)
        except (ValidationError, StorageError) as e:
            logger.error(f"Import error: {e}")
            return OperationResult(success=False, message=IMPORT_FAILED_MESSAGE)

        logger.info(
            f"Imported {len(patients)} patients, {len(appointments)} appointments, "
            f"{len(treatments)} treatments"
        )
        return OperationResult(
            success=True,
            message=(
                f"Successfully imported {len(patients)} patients, "
                f"{len(appointments)} appointments, and {len(treatments)} treatments"
            ),
        )

    def import_from_json(self, text: str) -> OperationResult:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Rejected import: {e}")
            return OperationResult(success=False, message="Invalid JSON file format")
        return self.import_data(payload)

    async def import_from_file(self, path: Union[str, Path]) -> OperationResult:
        """
        Read a JSON backup file and import it

        The read runs in a worker thread; there is no timeout or cancellation.
        """
        try:
            text = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read import file {path}: {e}")
            return OperationResult(success=False, message="Failed to read file")
        return self.import_from_json(text)

    # Backup history

    def _save_backup_to_history(self, backup: DatabaseBackup, backup_type: str = "manual") -> BackupEntry:
        entry = BackupEntry(
            id=_new_id(),
            type=backup_type,
            date=backup.export_date,
            patient_count=len(backup.patients),
            appointment_count=len(backup.appointments),
            treatment_count=len(backup.treatments),
            data=backup,
        )
        history = self.store.get_item(BACKUP_HISTORY_KEY)
        history.insert(0, entry.model_dump())
        self.store.set_item(BACKUP_HISTORY_KEY, history[:self.history_limit])
        return entry

    def get_backup_history(self) -> List[BackupEntry]:
        return self._load(BACKUP_HISTORY_KEY, BackupEntry)

    def restore_from_backup(self, backup_id: str) -> OperationResult:
        """
        Import the snapshot stored in a history entry

        Restoring is an ordinary import, so it archives the current state
        (manual plus pre-import-backup) first.
        """
        entry = next((b for b in self.get_backup_history() if b.id == backup_id), None)
        if entry is None:
            return OperationResult(success=False, message=BACKUP_NOT_FOUND_MESSAGE)
        logger.info(f"Restoring backup {backup_id} from {entry.date}")
        return self.import_data(entry.data)

    # Statistics, validation and cleanup

    def get_storage_stats(self) -> StorageStats:
        patients = self.store.get_item(PATIENTS_KEY)
        appointments = self.store.get_item(APPOINTMENTS_KEY)
        treatments = self.store.get_item(TREATMENTS_KEY)
        history = self.store.get_item(BACKUP_HISTORY_KEY)

        # Approximate footprint of the collections, backup history excluded
        data_size = len(json.dumps(
            {"patients": patients, "appointments": appointments, "treatments": treatments},
            separators=(",", ":"),
            ensure_ascii=False,
        ).encode("utf-8"))

        return StorageStats(
            total_patients=len(patients),
            total_appointments=len(appointments),
            total_treatments=len(treatments),
            storage_used=f"{data_size / 1024:.2f} KB",
            last_backup=history[0].get("date") if history else None,
        )

    def validate_data(self) -> ValidationReport:
        """
        Count orphaned records and duplicate patients

        A patient is a duplicate when its email or phone was already seen on
        an earlier patient in stored order; first occurrences never count.
        """
        patients = self.store.get_item(PATIENTS_KEY)
        appointments = self.store.get_item(APPOINTMENTS_KEY)
        treatments = self.store.get_item(TREATMENTS_KEY)

        patient_ids = {p.get("id") for p in patients}
        orphaned_appointments = sum(1 for a in appointments if a.get("patient_id") not in patient_ids)
        orphaned_treatments = sum(1 for t in treatments if t.get("patient_id") not in patient_ids)

        emails = set()
        phones = set()
        duplicate_patients = 0
        for patient in patients:
            email = patient.get("email")
            phone = patient.get("phone")
            if email in emails or phone in phones:
                duplicate_patients += 1
            emails.add(email)
            phones.add(phone)

        return ValidationReport(
            orphaned_appointments=orphaned_appointments,
            orphaned_treatments=orphaned_treatments,
            duplicate_patients=duplicate_patients,
        )

    def cleanup_orphaned_data(self) -> CleanupResult:
        """
        Drop appointments and treatments whose patient no longer exists
        """
        patient_ids = {p.get("id") for p in self.store.get_item(PATIENTS_KEY)}
        appointments = self.store.get_item(APPOINTMENTS_KEY)
        treatments = self.store.get_item(TREATMENTS_KEY)

        valid_appointments = [a for a in appointments if a.get("patient_id") in patient_ids]
        valid_treatments = [t for t in treatments if t.get("patient_id") in patient_ids]
        cleaned = (
            len(appointments) - len(valid_appointments)
            + len(treatments) - len(valid_treatments)
        )

        self.store.set_item(APPOINTMENTS_KEY, valid_appointments)
        self.store.set_item(TREATMENTS_KEY, valid_treatments)
        logger.info(f"Cleanup removed {cleaned} orphaned records")
        return CleanupResult(cleaned=cleaned)

    def clear_all_data(self):
        """
        Remove patients, appointments and treatments; backup history is kept
        """
        self.store.remove_item(PATIENTS_KEY)
        self.store.remove_item(APPOINTMENTS_KEY)
        self.store.remove_item(TREATMENTS_KEY)
        logger.warning("Cleared all practice data (backup history kept)")


def build_data_manager(data_dir: Union[str, Path] = DATA_DIR) -> DataManager:
    """
    Create the data manager for this process from configuration
    """
    store = JsonFileStore(data_dir, cache_ttl_seconds=STORAGE_CACHE_TTL_SECONDS)
    return DataManager(store, history_limit=BACKUP_HISTORY_LIMIT, version=EXPORT_VERSION)
