import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from care.models import Message, User
from care.services import messaging

pytestmark = pytest.mark.django_db


class FakeLayer:
    """Records group_send calls instead of delivering them."""

    def __init__(self):
        self.sent = []

    async def group_send(self, group, event):
        self.sent.append((group, event))


@pytest.fixture
def layer(monkeypatch):
    fake = FakeLayer()
    monkeypatch.setattr(messaging, 'get_channel_layer', lambda: fake)
    return fake


@pytest.fixture
def people():
    def mk(email, role, name):
        return User.objects.create_user(username=email, email=email, password='x', role=role, name=name)
    return {
        'admin': mk('a@example.org', 'admin', 'Asha'),
        'doctor': mk('d@example.org', 'doctor', 'Devi'),
        'worker': mk('w@example.org', 'worker', 'Ravi'),
        'patient': mk('p@example.org', 'patient', 'Meena'),
    }


def as_user(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.mark.parametrize('role, expected', [
    ('admin', ['Devi', 'Ravi']),
    ('doctor', ['Asha', 'Ravi']),
    ('worker', ['Asha', 'Devi', 'Meena']),
    ('patient', ['Ravi']),
])
def test_contacts_follow_role_rules(people, role, expected):
    r = as_user(people[role]).get(reverse('message_contacts'))
    assert r.status_code == 200
    assert [c['name'] for c in r.data['items']] == expected


def test_send_persists_role_and_publishes_to_both_inboxes(people, layer):
    worker, doctor = people['worker'], people['doctor']
    r = as_user(worker).post(reverse('message_send'),
                             {'recipientId': doctor.id, 'content': '<b>BP</b> readings uploaded'}, format='json')
    assert r.status_code == 201
    msg = Message.objects.get()
    assert msg.content == 'BP readings uploaded'
    assert msg.sender_role == 'worker'

    groups = sorted(g for g, _ in layer.sent)
    assert groups == sorted([f'inbox.{worker.id}', f'inbox.{doctor.id}'])
    event = layer.sent[0][1]
    assert event['type'] == 'message.new'
    assert event['message']['id'] == msg.id


@pytest.mark.parametrize('raw, stored', [
    ('<a href="http://x">call</a> <i>me</i> <strong>now</strong>', 'call me now'),
    ('sugar < 70 & dizzy', 'sugar < 70 & dizzy'),
    ('Tom &amp; Jerry', 'Tom & Jerry'),
])
def test_send_stores_plain_text(people, layer, raw, stored):
    r = as_user(people['patient']).post(reverse('message_send'),
                                        {'recipientId': people['worker'].id, 'content': raw}, format='json')
    assert r.status_code == 201, r.data
    assert Message.objects.get().content == stored
    assert r.data['message']['content'] == stored


def test_length_limit_counts_plain_characters(people, layer):
    content = 'Tom & Jerry ' + '&' * 1988
    assert len(content) == 2000
    r = as_user(people['patient']).post(reverse('message_send'),
                                        {'recipientId': people['worker'].id, 'content': content}, format='json')
    assert r.status_code == 201, r.data
    assert Message.objects.get().content == content


def test_send_rejects_forbidden_pair_and_blank_content(people, layer):
    patient = people['patient']
    r = as_user(patient).post(reverse('message_send'),
                              {'recipientId': people['doctor'].id, 'content': 'hello'}, format='json')
    assert r.status_code == 403

    r = as_user(patient).post(reverse('message_send'),
                              {'recipientId': people['worker'].id, 'content': '<script></script>'}, format='json')
    assert r.status_code == 400

    r = as_user(patient).post(reverse('message_send'),
                              {'recipientId': people['worker'].id, 'content': 'x' * 2001}, format='json')
    assert r.status_code == 400

    r = as_user(patient).post(reverse('message_send'), {'recipientId': 99999, 'content': 'hi'}, format='json')
    assert r.status_code == 404
    assert Message.objects.count() == 0
    assert layer.sent == []


def test_thread_is_ascending_and_since_id_catches_up(people, layer):
    worker, patient = people['worker'], people['patient']
    for sender, recipient, text in [(patient, worker, 'one'), (worker, patient, 'two'), (patient, worker, 'three')]:
        messaging.send_message(sender, recipient, text)
    # an unrelated conversation must not leak in
    messaging.send_message(worker, people['doctor'], 'other')

    r = as_user(worker).get(reverse('message_thread'), {'peerId': patient.id})
    assert [m['content'] for m in r.data['items']] == ['one', 'two', 'three']

    since = r.data['items'][0]['id']
    r = as_user(patient).get(reverse('message_thread'), {'peerId': worker.id, 'sinceId': since})
    assert [m['content'] for m in r.data['items']] == ['two', 'three']


def test_thread_forbidden_without_history(people):
    r = as_user(people['patient']).get(reverse('message_thread'), {'peerId': people['doctor'].id})
    assert r.status_code == 403


def test_thread_stays_readable_after_role_change(people, layer):
    worker, patient = people['worker'], people['patient']
    messaging.send_message(patient, worker, 'hello')
    User.objects.filter(id=worker.id).update(role='doctor')
    worker.refresh_from_db()

    r = as_user(patient).get(reverse('message_thread'), {'peerId': worker.id})
    assert r.status_code == 200
    assert r.data['items'][0]['senderRole'] == 'patient'
    with pytest.raises(PermissionError):
        messaging.send_message(patient, worker, 'still there?')
