"""
Practice dashboard: search, filtering and summary metrics

Pure functions over already-loaded records; nothing here writes storage.
`today` is injectable so callers (and tests) control the reference date.
"""
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from app.database.schemas import Appointment, DashboardSummary, Patient, Treatment


def _today(today: Optional[date]) -> date:
    return today or date.today()


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None


def _previous_month(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def _percent(part: float, whole: float) -> int:
    return round(part / whole * 100) if whole else 0


# Search and filtering

def search_patients(patients: List[Patient], term: str = "") -> List[Patient]:
    """
    Match name or email case-insensitively, or phone as typed
    """
    if not term:
        return list(patients)
    needle = term.lower()
    return [
        p for p in patients
        if needle in p.name.lower() or needle in p.email.lower() or term in p.phone
    ]


def filter_appointments(
    appointments: List[Appointment],
    term: str = "",
    status: Optional[str] = None,
) -> List[Appointment]:
    """
    Match patient name or visit type, optionally by status, ordered by date and time
    """
    needle = term.lower()
    filtered = [
        a for a in appointments
        if needle in a.patient_name.lower() or needle in a.type.lower()
    ]
    if status and status != "all":
        filtered = [a for a in filtered if a.status == status]
    return sorted(filtered, key=lambda a: (a.date, a.time))


def search_treatments(treatments: List[Treatment], term: str = "") -> List[Treatment]:
    """
    Match patient name, diagnosis or treatment text, most recent first
    """
    needle = term.lower()
    filtered = [
        t for t in treatments
        if needle in t.patient_name.lower()
        or needle in t.diagnosis.lower()
        or needle in t.treatment.lower()
    ]
    return sorted(filtered, key=lambda t: t.date, reverse=True)


# Appointment metrics

def todays_appointments(appointments: List[Appointment], today: Optional[date] = None) -> List[Appointment]:
    day = _today(today).isoformat()
    return [a for a in appointments if a.date == day]


def upcoming_appointment_count(appointments: List[Appointment], today: Optional[date] = None) -> int:
    """Scheduled appointments strictly after today"""
    day = _today(today).isoformat()
    return sum(1 for a in appointments if a.date > day and a.status == "scheduled")


def completion_rate(appointments: List[Appointment]) -> int:
    completed = sum(1 for a in appointments if a.status == "completed")
    return _percent(completed, len(appointments))


# Treatment and revenue metrics

def total_revenue(treatments: List[Treatment]) -> float:
    return sum(t.cost for t in treatments)


def _in_month(value: str, year: int, month: int) -> bool:
    parsed = _parse_date(value)
    return parsed is not None and parsed.year == year and parsed.month == month


def monthly_revenue(treatments: List[Treatment], year: int, month: int) -> float:
    return sum(t.cost for t in treatments if _in_month(t.date, year, month))


def revenue_growth(treatments: List[Treatment], today: Optional[date] = None) -> int:
    """
    Percent change of this month's revenue against last month's

    Returns 0 when last month had no revenue.
    """
    day = _today(today)
    this_month = monthly_revenue(treatments, day.year, day.month)
    last_month = monthly_revenue(treatments, *_previous_month(day.year, day.month))
    if last_month == 0:
        return 0
    return round((this_month - last_month) / last_month * 100)


def treatments_this_month(treatments: List[Treatment], today: Optional[date] = None) -> int:
    day = _today(today)
    return sum(1 for t in treatments if _in_month(t.date, day.year, day.month))


def total_medications(treatments: List[Treatment]) -> int:
    return sum(len(t.medications) for t in treatments)


# Patient metrics

def new_patients_count(patients: List[Patient], days: int = 30, today: Optional[date] = None) -> int:
    """Patients registered after the cutoff `days` before today"""
    cutoff = _today(today) - timedelta(days=days)
    count = 0
    for patient in patients:
        created = _parse_date(patient.created_at)
        if created is not None and created > cutoff:
            count += 1
    return count


def patients_with_allergies(patients: List[Patient]) -> int:
    return sum(1 for p in patients if p.allergies and p.allergies.strip())


def build_dashboard_summary(manager, today: Optional[date] = None) -> DashboardSummary:
    """
    Collect every dashboard number from the data manager in one pass
    """
    day = _today(today)
    patients = manager.get_patients()
    appointments = manager.get_appointments()
    treatments = manager.get_treatments()

    return DashboardSummary(
        total_patients=len(patients),
        new_patients_last_30_days=new_patients_count(patients, 30, day),
        patients_with_allergies=patients_with_allergies(patients),
        todays_appointments=todays_appointments(appointments, day),
        upcoming_appointments=upcoming_appointment_count(appointments, day),
        completion_rate=completion_rate(appointments),
        total_treatments=len(treatments),
        treatments_this_month=treatments_this_month(treatments, day),
        total_medications=total_medications(treatments),
        total_revenue=total_revenue(treatments),
        monthly_revenue=monthly_revenue(treatments, day.year, day.month),
        revenue_growth=revenue_growth(treatments, day),
    )
