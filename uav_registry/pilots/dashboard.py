"""
Figures for the dashboard page.

Everything here is computed from the pilot list in Python: the registry
holds tens of pilots, not thousands.
"""

from notifications.services.expiry import days_until, expiry_status
from pilots.models import Pilot
from pilots.repository import Subject

EXPIRING_WINDOW_DAYS = 45

INTERNAL = {Pilot.RataCertification.IP, Pilot.RataCertification.BOTH}
EXTERNAL = {Pilot.RataCertification.EP, Pilot.RataCertification.BOTH}


def _field_days(pilot, today):
    return [
        days_until(today, tracked.expiry)
        for tracked in Subject.from_pilot(pilot).tracked_fields()
    ]


def _instructor_valid(pilot, today):
    if not pilot.instructor_license_expiry:
        return False
    return days_until(today, pilot.instructor_license_expiry) > 0


def calculate_stats(pilots, today):
    pilots = list(pilots)

    ip_pilots = [p for p in pilots if p.rata_certification in INTERNAL]
    ep_pilots = [p for p in pilots if p.rata_certification in EXTERNAL]
    ip_instructors = [p for p in ip_pilots if p.is_instructor]
    ep_instructors = [p for p in ep_pilots if p.is_instructor]

    def medical_valid(pilot):
        return days_until(today, pilot.health_certificate_expiry) > 0

    expiring = 0
    expired = 0
    for pilot in pilots:
        days = _field_days(pilot, today)
        if any(0 < d <= EXPIRING_WINDOW_DAYS for d in days):
            expiring += 1
        if any(d <= 0 for d in days):
            expired += 1

    return {
        "total_pilots": len(pilots),
        "ip_pilots": len(ip_pilots),
        "valid_ip_pilots": sum(1 for p in ip_pilots if medical_valid(p)),
        "ep_pilots": len(ep_pilots),
        "valid_ep_pilots": sum(1 for p in ep_pilots if medical_valid(p)),
        "ip_instructors": len(ip_instructors),
        "valid_ip_instructors": sum(1 for p in ip_instructors if _instructor_valid(p, today)),
        "ep_instructors": len(ep_instructors),
        "valid_ep_instructors": sum(1 for p in ep_instructors if _instructor_valid(p, today)),
        "expiring_pilots": expiring,
        "expired_pilots": expired,
    }


def _expirations(pilots, today):
    for pilot in pilots:
        for tracked in Subject.from_pilot(pilot).tracked_fields():
            days = days_until(today, tracked.expiry)
            yield {
                "pilot": pilot,
                "pilot_name": pilot.full_name,
                "kind": tracked.kind,
                "label": tracked.kind.label,
                "date": tracked.expiry,
                "days": days,
                "status": expiry_status(days),
            }


def upcoming_expirations(pilots, today, window=EXPIRING_WINDOW_DAYS):
    """Documents expiring within ``window`` days, soonest first."""
    rows = [row for row in _expirations(pilots, today) if 0 <= row["days"] <= window]
    return sorted(rows, key=lambda row: row["days"])


def expired_licenses(pilots, today):
    """Expired documents, longest overdue first."""
    rows = []
    for row in _expirations(pilots, today):
        if row["days"] < 0:
            row["days_overdue"] = abs(row["days"])
            rows.append(row)
    return sorted(rows, key=lambda row: row["days_overdue"], reverse=True)
