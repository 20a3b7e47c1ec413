"""
Management command to populate the database with sample data.
"""
import random
import uuid
from datetime import timedelta

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.utils import timezone

from care.models import AccessRequest, MedicalRecord, Message, User
from care.services.report import assess_vitals
from care.services.stats import invalidate_role_counts

VILLAGES = ['Rampur', 'Sitapur', 'Kheri', 'Barsana']
SYMPTOMS = ['headache', 'fever', 'cough', 'dizziness', 'joint pain', 'fatigue', '']


class Command(BaseCommand):
    help = 'Populate database with sample villages, users, vitals and messages'

    def add_arguments(self, parser):
        parser.add_argument('--patients', type=int, default=12)
        parser.add_argument('--seed', type=int, default=None)

    def handle(self, *args, **options):
        if options['seed'] is not None:
            random.seed(options['seed'])
        self.password = make_password('Caresora#2024')

        self.stdout.write('Creating sample data...')
        doctors = self.create_users('doctor', 2)
        workers = self.create_workers()
        patients = self.create_users('patient', options['patients'])
        self.create_records(workers, patients)
        self.create_messages(doctors, workers, patients)
        self.create_access_requests(patients)
        invalidate_role_counts()
        self.stdout.write(self.style.SUCCESS('Sample data created.'))

    def _user(self, email, name, role, village=''):
        user, _ = User.objects.get_or_create(
            username=email,
            defaults={
                'email': email,
                'name': name,
                'role': role,
                'village': village,
                'age': random.randint(18, 80) if role == 'patient' else None,
                'phone': f'+91{random.randint(7000000000, 9999999999)}',
                'password': self.password,
            },
        )
        return user

    def create_users(self, role, count):
        users = []
        for i in range(1, count + 1):
            village = VILLAGES[i % len(VILLAGES)] if role == 'patient' else ''
            user = self._user(f'{role}{i}@caresora.test', f'{role.capitalize()} {i}', role, village)
            users.append(user)
            self.stdout.write(f'user: {user.email} ({role})')
        return users

    def create_workers(self):
        # one field worker per village
        return [
            self._user(f'worker.{v.lower()}@caresora.test', f'{v} Worker', 'worker', v)
            for v in VILLAGES
        ]

    def create_records(self, workers, patients):
        by_village = {w.village: w for w in workers}
        now = timezone.now()
        created = 0
        for patient in patients:
            worker = by_village.get(patient.village) or workers[0]
            for visit in range(random.randint(0, 3)):
                bp = f'{random.randint(95, 185)}/{random.randint(60, 115)}'
                sugar = float(random.randint(60, 320))
                when = now - timedelta(days=random.randint(0, 60), hours=visit)
                MedicalRecord.objects.create(
                    patient=patient,
                    worker=worker,
                    bp=bp,
                    sugar=sugar,
                    weight=round(random.uniform(40, 95), 1),
                    symptoms=random.choice(SYMPTOMS),
                    condition=assess_vitals(bp, sugar)['condition'],
                    client_ref=uuid.uuid4(),
                    recorded_at=when,
                )
                created += 1
            if patient.medical_records.exists():
                User.objects.filter(id=patient.id).update(worker_checked=True)
        self.stdout.write(f'records: {created}')

    def create_messages(self, doctors, workers, patients):
        pairs = [(workers[0], doctors[0]), (doctors[0], workers[0])]
        pairs += [(p, workers[0]) for p in patients[:2]]
        for sender, recipient in pairs:
            Message.objects.create(
                sender=sender,
                sender_role=sender.role,
                recipient=recipient,
                content=f'Hello from {sender.display_name()}',
            )
        self.stdout.write(f'messages: {len(pairs)}')

    def create_access_requests(self, patients):
        if not patients:
            return
        AccessRequest.objects.get_or_create(
            user=patients[-1],
            status=AccessRequest.STATUS_PENDING,
            defaults={'requested_role': 'worker', 'reason': 'I volunteer at the village health camp.'},
        )
