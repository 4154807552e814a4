#!/usr/bin/env python3
"""
Tests for the Fitness Dashboard Web App.

Run with: pytest webapp/tests/test_webapp.py -v
"""

import os
import sys
from pathlib import Path

import pytest

# Set test environment before importing
os.environ['SECRET_KEY'] = 'test-secret-key-12345'
os.environ['FLASK_ENV'] = 'test'
os.environ['FD_API_KEY'] = ''

# Add webapp directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


PLAN_FILE = "two-week-plan-2026-02-19_to_2026-03-04.md"
PLAN = """# Two-week plan

## Thu Feb 19 — Quality run (intervals)

- 6 x 3 min @ 5k effort

## Fri Feb 20 — Upper body strength

- Bench 4 x 6
"""


@pytest.fixture
def data_root(tmp_path, monkeypatch):
    """Athlete 'sam' with one plan file."""
    coach = tmp_path / "sam" / "coach"
    coach.mkdir(parents=True)
    (coach / PLAN_FILE).write_text(PLAN)
    monkeypatch.setenv('FD_DATA_DIR', str(tmp_path))
    monkeypatch.delenv('FD_API_KEY', raising=False)
    return tmp_path


@pytest.fixture
def app():
    """Create test Flask app."""
    from app import app
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


class TestInputValidation:
    """Tests for input validation functions."""

    def test_validate_athlete_id_valid(self):
        from app import validate_athlete_id

        assert validate_athlete_id('john_doe') is True
        assert validate_athlete_id('john-doe') is True
        assert validate_athlete_id('a') is True

    def test_validate_athlete_id_invalid(self):
        from app import validate_athlete_id

        assert validate_athlete_id('') is False
        assert validate_athlete_id('../etc/passwd') is False
        assert validate_athlete_id('john/doe') is False
        assert validate_athlete_id('UPPERCASE') is False
        assert validate_athlete_id('a' * 100) is False
        assert validate_athlete_id('scripts') is False

    def test_api_invalid_athlete_id(self, client, data_root):
        response = client.get('/api/athlete/Bad.Id/today')
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid athlete ID'

    def test_code_directory_is_not_an_athlete(self, client, data_root):
        response = client.post(
            '/api/athlete/scripts/coach/reply', json={'reply': '[SAVE_NOTE: hi]'},
        )
        assert response.status_code == 400
        assert not (data_root / 'scripts').exists()

    def test_invalid_date_query(self, client, data_root):
        response = client.get('/api/athlete/sam/today?date=2026-02-30')
        assert response.status_code == 400
        assert 'Invalid date' in response.get_json()['error']


class TestGeneral:

    def test_health_ok(self, client, data_root):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json() == {'status': 'ok', 'service': 'fitdash-webapp'}

    def test_health_degraded_without_data_dir(self, client, tmp_path, monkeypatch):
        monkeypatch.setenv('FD_DATA_DIR', str(tmp_path / 'missing'))
        response = client.get('/health')
        assert response.status_code == 503
        assert response.get_json()['status'] == 'degraded'

    def test_security_headers_present(self, client, data_root):
        response = client.get('/health')
        assert response.headers.get('X-Content-Type-Options') == 'nosniff'
        assert response.headers.get('X-Frame-Options') == 'DENY'
        assert 'Strict-Transport-Security' not in response.headers

    def test_404_handler(self, client):
        response = client.get('/nonexistent-page-12345')
        assert response.status_code == 404
        assert response.get_json() == {'error': 'Not found'}

    def test_405_handler(self, client, data_root):
        response = client.post('/api/athlete/sam/today')
        assert response.status_code == 405


class TestAuth:

    def test_key_required_when_configured(self, client, data_root, monkeypatch):
        monkeypatch.setenv('FD_API_KEY', 'k3y')
        assert client.get('/api/athlete/sam/today').status_code == 401
        assert client.get('/api/athlete/sam/today', headers={'X-API-Key': 'wrong'}).status_code == 401

        response = client.get('/api/athlete/sam/today', headers={'X-API-Key': 'k3y'})
        assert response.status_code == 200

    def test_dev_mode_without_key(self, client, data_root):
        assert client.get('/api/athlete/sam/today?date=2026-02-19').status_code == 200


class TestToday:

    def test_section_for_date(self, client, data_root):
        response = client.get('/api/athlete/sam/today?date=2026-02-20')
        assert response.status_code == 200
        assert response.get_json() == {
            'date': '2026-02-20',
            'plan_file': f'coach/{PLAN_FILE}',
            'heading': 'Fri Feb 20 — Upper body strength',
            'body': '- Bench 4 x 6',
            'found': True,
        }

    def test_day_without_section(self, client, data_root):
        data = client.get('/api/athlete/sam/today?date=2026-03-01').get_json()
        assert data['found'] is False
        assert data['heading'] == '' and data['body'] == ''
        assert data['plan_file'] == f'coach/{PLAN_FILE}'

    def test_athlete_without_plans(self, client, data_root):
        data = client.get('/api/athlete/new-athlete/today?date=2026-02-19').get_json()
        assert data['found'] is False
        assert data['plan_file'] is None

    def test_unreadable_plan_degrades_to_empty_day(self, client, data_root):
        (data_root / 'sam' / 'coach' / PLAN_FILE).write_bytes(b"## Thu Feb 19\n\xff\xfe bad\n")

        response = client.get('/api/athlete/sam/today?date=2026-02-19')

        assert response.status_code == 200
        data = response.get_json()
        assert data['found'] is False
        assert data['plan_file'] is None
        assert data['heading'] == '' and data['body'] == ''


class TestPlan:

    def test_active_plan_document(self, client, data_root):
        data = client.get('/api/athlete/sam/plan?date=2026-02-19').get_json()
        assert data['plan_file'] == f'coach/{PLAN_FILE}'
        assert data['content'] == PLAN
        assert data['windows'] == [
            {'file': PLAN_FILE, 'start': '2026-02-19', 'end': '2026-03-04'},
        ]

    def test_no_plan_configured(self, client, data_root):
        response = client.get('/api/athlete/new-athlete/plan')
        assert response.status_code == 404
        assert response.get_json() == {'error': 'No plan configured'}


class TestCoachReply:

    def test_reply_without_markers(self, client, data_root):
        response = client.post(
            '/api/athlete/sam/coach/reply?date=2026-02-19',
            json={'reply': '  Nice work, keep it easy.  '},
        )
        assert response.status_code == 200
        assert response.get_json() == {'reply': 'Nice work, keep it easy.', 'actionResults': []}

    def test_reply_markers_executed(self, client, data_root):
        reply = (
            "Let's back off today.\n"
            "[SAVE_NOTE: slept 4 hours, legs heavy]\n"
            "<PLAN_UPDATE>\n## Thu Feb 19 — Recovery\n- 30 min walk\n</PLAN_UPDATE>"
        )
        response = client.post('/api/athlete/sam/coach/reply?date=2026-02-19', json={'reply': reply})
        data = response.get_json()

        assert data['reply'] == "Let's back off today."
        assert [r['type'] for r in data['actionResults']] == ['save_note', 'edit_plan']
        assert all(r['success'] for r in data['actionResults'])

        plan = (data_root / 'sam' / 'coach' / PLAN_FILE).read_text()
        assert '## Thu Feb 19 — Recovery\n\n- 30 min walk\n\n## Fri Feb 20' in plan
        notes = (data_root / 'sam' / 'coach' / 'session-notes.md').read_text()
        assert notes.startswith('# Coach Session Notes\n')
        assert 'slept 4 hours, legs heavy' in notes

        today = client.get('/api/athlete/sam/today?date=2026-02-19').get_json()
        assert today['heading'] == 'Thu Feb 19 — Recovery'
        assert today['body'] == '- 30 min walk'

    def test_failed_action_reported(self, client, data_root):
        reply = '<PLAN_UPDATE date="2026-02-27">\n- rest\n</PLAN_UPDATE>Done.'
        data = client.post('/api/athlete/sam/coach/reply?date=2026-02-19', json={'reply': reply}).get_json()

        assert data['reply'] == 'Done.'
        assert data['actionResults'][0]['type'] == 'edit_plan'
        assert data['actionResults'][0]['success'] is False
        assert '2026-02-27' in data['actionResults'][0]['detail']
        assert (data_root / 'sam' / 'coach' / PLAN_FILE).read_text() == PLAN

    @pytest.mark.parametrize('body', [None, {'text': 'hi'}, {'reply': 42}, ['reply']])
    def test_bad_body(self, client, data_root, body):
        if body is None:
            response = client.post('/api/athlete/sam/coach/reply', data='not json')
        else:
            response = client.post('/api/athlete/sam/coach/reply', json=body)
        assert response.status_code == 400

    def test_reply_too_long(self, client, data_root):
        from app import MAX_REPLY_LENGTH
        response = client.post('/api/athlete/sam/coach/reply', json={'reply': 'x' * (MAX_REPLY_LENGTH + 1)})
        assert response.status_code == 400

    def test_csrf_exempt(self, app, data_root):
        app.config['WTF_CSRF_ENABLED'] = True
        try:
            response = app.test_client().post('/api/athlete/sam/coach/reply', json={'reply': 'ok'})
        finally:
            app.config['WTF_CSRF_ENABLED'] = False
        assert response.status_code == 200
