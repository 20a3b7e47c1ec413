from typing import Optional

from django.contrib.auth import get_user_model
from django.utils import timezone

from care.models import MedicalRecord

User = get_user_model()

PATIENT_SEARCH_LIMIT = 8


def serialize_user(u: User) -> dict:
    return {
        'id': u.id,
        'name': u.display_name(),
        'email': u.email,
        'role': u.role,
        'village': u.village,
        'age': u.age,
        'phone': u.phone,
        'createdAt': u.date_joined.isoformat() if u.date_joined else None,
    }


def serialize_with_review(u: User) -> dict:
    return {
        **serialize_user(u),
        'workerChecked': u.worker_checked,
        'doctorChecked': u.doctor_checked,
        'doctorMessage': u.doctor_message,
    }


def users_with_connections(role: str, q: Optional[str] = None) -> list[dict]:
    """List users of ``role`` with the people linked to them by records.

    A patient's connections are the workers who recorded their vitals
    (their care team); a worker's are the patients they recorded.
    Other roles have no connections.
    """
    qs = User.objects.filter(role=role).order_by('name', 'id')
    if q:
        qs = qs.filter(name__icontains=q) | qs.filter(email__icontains=q)
    users = list(qs)

    pairs = set(MedicalRecord.objects.exclude(worker_id=None).values_list('patient_id', 'worker_id'))
    linked: dict[int, set[int]] = {}
    for patient_id, worker_id in pairs:
        if role == 'patient':
            linked.setdefault(patient_id, set()).add(worker_id)
        elif role == 'worker':
            linked.setdefault(worker_id, set()).add(patient_id)

    wanted = set().union(*linked.values()) if linked else set()
    names = {u.id: u for u in User.objects.filter(id__in=wanted)}

    data = []
    for u in users:
        conn = [names[i] for i in sorted(linked.get(u.id, ())) if i in names]
        data.append({
            **serialize_user(u),
            'connections': [{'id': c.id, 'name': c.display_name(), 'role': c.role} for c in conn],
        })
    return data


def search_patients(q: str, limit: int = PATIENT_SEARCH_LIMIT):
    return User.objects.filter(role='patient', name__istartswith=q).order_by('name', 'id')[:limit]


def village_workers(patient: User):
    if not patient.village:
        return User.objects.none()
    return User.objects.filter(role='worker', village__iexact=patient.village).order_by('name', 'id')


def worker_stats(worker: User) -> dict:
    now = timezone.localtime()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    mine = MedicalRecord.objects.filter(worker=worker)
    return {
        'totalPatients': User.objects.filter(role='patient').count(),
        'docsUploaded': mine.count(),
        'checkedThisMonth': mine.filter(recorded_at__gte=month_start).values('patient_id').distinct().count(),
    }


def doctor_stats() -> dict:
    patients = User.objects.filter(role='patient')
    return {
        'workers': User.objects.filter(role='worker').count(),
        'patients': patients.count(),
        'patientsWithRecords': MedicalRecord.objects.values('patient_id').distinct().count(),
        'pendingReview': patients.filter(worker_checked=True, doctor_checked=False).count(),
    }
