import os
from types import SimpleNamespace

# Settings are read at import time, so the environment has to be in place
# before any application module is imported.
os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('ACCESS_TOKEN_SECRET', 'test-access-secret-0123456789abcdef')
os.environ.setdefault('REFRESH_TOKEN_SECRET', 'test-refresh-secret-0123456789abcdef')
os.environ.setdefault('PASSWORD_HASH_ROUNDS', '1000')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from database import Base, get_db, init_db  # noqa: E402
from main import app  # noqa: E402
from models.user import User  # noqa: E402

API = '/api/v1'


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def bearer(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def make_user(client, session_factory):
    """Register + log in a user; returns ids, credentials and auth headers."""

    def _make_user(username: str, role: str = 'Student', password: str = 'secret123'):
        email = f'{username}@campus.edu'
        response = client.post(
            f'{API}/users/register',
            json={'username': username, 'email': email, 'name': username.title(), 'password': password},
        )
        assert response.status_code == 201, response.json()
        user_id = response.json()['data']['id']

        if role != 'Student':
            session = session_factory()
            try:
                session.query(User).filter(User.id == user_id).update({'role': role})
                session.commit()
            finally:
                session.close()

        login = client.post(f'{API}/users/login', json={'email': email, 'password': password})
        assert login.status_code == 200, login.json()
        data = login.json()['data']
        return SimpleNamespace(
            id=user_id,
            username=username,
            email=email,
            password=password,
            access_token=data['accessToken'],
            refresh_token=data['refreshToken'],
            headers=bearer(data['accessToken']),
        )

    return _make_user
