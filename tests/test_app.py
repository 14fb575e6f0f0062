import importlib.util
import json
from pathlib import Path

import pytest

from core.config import settings
from core.security import verify_password
from main import _masked_body
from models.user import User

SEED_SCRIPT = Path(__file__).resolve().parents[1] / 'bin' / 'seed_admin.py'


def test_health(client) -> None:
    response = client.get('/health')

    assert response.status_code == 200
    assert response.json() == {'status': 'ok'}


def test_masked_body_hides_credentials() -> None:
    raw = json.dumps({'email': 'a@x.com', 'password': 'secret123', 'refreshToken': 'abc'}).encode()

    masked = json.loads(_masked_body(raw))

    assert masked == {'email': 'a@x.com', 'password': '******', 'refreshToken': '******'}


def test_masked_body_non_json() -> None:
    assert _masked_body(b'') == ''
    assert _masked_body(b'not json') == '<8 bytes>'


def test_unknown_route_uses_envelope(client) -> None:
    response = client.get('/api/v1/nowhere')

    assert response.status_code == 404
    assert response.json()['success'] is False
    assert response.json()['data'] is None


@pytest.fixture
def seed_admin(session_factory, monkeypatch):
    module_spec = importlib.util.spec_from_file_location('seed_admin', SEED_SCRIPT)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)

    monkeypatch.setattr(module, 'SessionLocal', session_factory)
    monkeypatch.setattr(module, 'init_db', lambda: None)
    monkeypatch.setattr(settings, 'first_admin_username', 'Root')
    monkeypatch.setattr(settings, 'first_admin_email', 'Root@Campus.edu')
    monkeypatch.setattr(settings, 'first_admin_name', 'Root Admin')
    monkeypatch.setattr(settings, 'first_admin_password', 'changeme')
    return module


def test_seed_admin_creates_admin(seed_admin, db) -> None:
    seed_admin.seed()

    admin = db.query(User).filter(User.email == 'root@campus.edu').one()
    assert admin.username == 'root'
    assert admin.role == 'Admin'
    assert verify_password('changeme', admin.password_hash)


def test_seed_admin_promotes_existing_user(seed_admin, client, make_user, db) -> None:
    root = make_user('root')

    seed_admin.seed()

    user = db.query(User).filter(User.id == root.id).one()
    assert user.role == 'Admin'
    assert verify_password(root.password, user.password_hash)
    assert db.query(User).count() == 1
