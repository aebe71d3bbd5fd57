import uuid

from fastapi.testclient import TestClient

from wellchat.main import app

client = TestClient(app)


def auth_headers():
    email = f"track_{uuid.uuid4().hex[:8]}@example.com"
    token = client.post('/api/auth/signup', json={'email': email, 'password': 'secret123'}).json()['token']
    return {'Authorization': f'Bearer {token}'}


def test_mood_entries_and_average():
    headers = auth_headers()
    assert client.get('/api/mood', headers=headers).json() == {'entries': [], 'average': None}
    for score, note in [(4, 'tired'), (7, 'better'), (8, '')]:
        r = client.post('/api/mood', json={'mood_score': score, 'notes': note}, headers=headers)
        assert r.status_code == 200
    data = client.get('/api/mood', headers=headers).json()
    assert [e['mood_score'] for e in data['entries']] == [8, 7, 4]
    assert data['average'] == 6.3


def test_mood_score_range():
    headers = auth_headers()
    assert client.post('/api/mood', json={'mood_score': 0}, headers=headers).status_code == 422
    assert client.post('/api/mood', json={'mood_score': 11}, headers=headers).status_code == 422


def test_mood_is_per_user():
    a, b = auth_headers(), auth_headers()
    client.post('/api/mood', json={'mood_score': 9}, headers=a)
    assert client.get('/api/mood', headers=b).json()['entries'] == []


def test_journal_entries():
    headers = auth_headers()
    r = client.post('/api/journal', json={'entry': '  Tried the breathing exercise.  '}, headers=headers)
    assert r.status_code == 200
    assert r.json()['entry'] == 'Tried the breathing exercise.'
    assert client.post('/api/journal', json={'entry': '   '}, headers=headers).status_code == 400
    rows = client.get('/api/journal', headers=headers).json()
    assert [row['entry'] for row in rows] == ['Tried the breathing exercise.']


def test_tracking_requires_login():
    assert client.post('/api/mood', json={'mood_score': 5}).status_code == 401
    assert client.get('/api/journal').status_code == 401


def test_session_analytics():
    r = client.post('/api/analytics/session', json={
        'userId': 'anon-123',
        'duration': 312,
        'messageCount': 9,
        'timestamp': '2026-10-19T12:00:00Z',
    })
    assert r.status_code == 200
    assert r.json() == {'success': True}
