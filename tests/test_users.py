import pytest

from conftest import API, bearer
from core.security import issue_token_pair
from models.user import User
from users import router as users_router


def _register_alice(client):
    return client.post(
        f'{API}/users/register',
        json={'username': 'alice', 'email': 'a@x.com', 'name': 'Alice', 'password': 'secret123'},
    )


def _login(client, email='a@x.com', password='secret123'):
    return client.post(f'{API}/users/login', json={'email': email, 'password': password})


def _stored_refresh_token(session_factory, user_id):
    session = session_factory()
    try:
        return session.query(User).filter(User.id == user_id).one().refresh_token
    finally:
        session.close()


# ---------------------------------------------------------------------------
# register / login
# ---------------------------------------------------------------------------


def test_register_returns_envelope_without_credentials(client) -> None:
    response = _register_alice(client)
    body = response.json()

    assert response.status_code == 201
    assert body['statusCode'] == 201
    assert body['success'] is True
    assert body['data']['username'] == 'alice'
    assert body['data']['role'] == 'Student'
    assert 'password' not in body['data']
    assert 'passwordHash' not in body['data']
    assert 'refreshToken' not in body['data']


def test_register_accepts_full_name_instead_of_name(client) -> None:
    response = client.post(
        f'{API}/users/register',
        json={'username': 'bob', 'email': 'b@x.com', 'fullName': 'Bob Builder', 'password': 'pw'},
    )

    assert response.status_code == 201
    assert response.json()['data']['name'] == 'Bob Builder'


def test_register_requires_a_name(client) -> None:
    response = client.post(
        f'{API}/users/register',
        json={'username': 'bob', 'email': 'b@x.com', 'password': 'pw'},
    )

    assert response.status_code == 400
    assert response.json()['message'] == 'Name is required'


def test_register_missing_field_is_a_400_with_field_errors(client) -> None:
    response = client.post(f'{API}/users/register', json={'username': 'bob', 'name': 'Bob', 'password': 'pw'})
    body = response.json()

    assert response.status_code == 400
    assert body['success'] is False
    assert body['data'] is None
    assert [error['field'] for error in body['errors']] == ['email']


@pytest.mark.parametrize(
    ('username', 'email'),
    [('alice', 'other@x.com'), ('other', 'a@x.com'), ('ALICE', 'third@x.com')],
)
def test_register_rejects_taken_username_or_email(client, username, email) -> None:
    _register_alice(client)

    response = client.post(
        f'{API}/users/register',
        json={'username': username, 'email': email, 'name': 'Other', 'password': 'pw'},
    )

    assert response.status_code == 409


def test_login_returns_user_and_token_pair(client) -> None:
    _register_alice(client)

    response = _login(client)
    data = response.json()['data']

    assert response.status_code == 200
    assert data['user']['username'] == 'alice'
    assert 'password' not in data['user']
    assert data['accessToken']
    assert data['refreshToken']


def test_login_sets_http_only_secure_cookies(client) -> None:
    _register_alice(client)

    cookies = _login(client).headers.get_list('set-cookie')

    assert any(c.startswith('accessToken=') and 'HttpOnly' in c and 'Secure' in c for c in cookies)
    assert any(c.startswith('refreshToken=') and 'HttpOnly' in c and 'Secure' in c for c in cookies)


@pytest.mark.parametrize(('email', 'password'), [('a@x.com', 'wrong'), ('nobody@x.com', 'secret123')])
def test_login_failures_are_401_with_the_same_message(client, email, password) -> None:
    _register_alice(client)

    response = _login(client, email, password)

    assert response.status_code == 401
    assert response.json()['message'] == 'Invalid email or password'


# ---------------------------------------------------------------------------
# session verifier
# ---------------------------------------------------------------------------


def test_profile_with_access_token_returns_current_user(client) -> None:
    _register_alice(client)
    token = _login(client).json()['data']['accessToken']

    response = client.get(f'{API}/users/profile', headers=bearer(token))

    assert response.status_code == 200
    assert response.json()['data']['email'] == 'a@x.com'
    assert 'password' not in response.json()['data']


def test_profile_accepts_access_token_cookie(client) -> None:
    _register_alice(client)
    token = _login(client).json()['data']['accessToken']

    response = client.get(f'{API}/users/profile', headers={'Cookie': f'accessToken={token}'})

    assert response.status_code == 200
    assert response.json()['data']['username'] == 'alice'


def test_profile_without_token_is_401(client) -> None:
    response = client.get(f'{API}/users/profile')

    assert response.status_code == 401
    assert response.json()['success'] is False


def test_profile_with_garbage_token_is_401(client) -> None:
    response = client.get(f'{API}/users/profile', headers=bearer('not-a-jwt'))

    assert response.status_code == 401


# ---------------------------------------------------------------------------
# refresh / logout
# ---------------------------------------------------------------------------


def test_refresh_token_succeeds_exactly_once(client, make_user) -> None:
    alice = make_user('alice')

    first = client.post(f'{API}/users/refresh-token', json={'refreshToken': alice.refresh_token})
    replay = client.post(f'{API}/users/refresh-token', json={'refreshToken': alice.refresh_token})

    assert first.status_code == 200
    assert first.json()['data']['refreshToken'] != alice.refresh_token
    assert replay.status_code == 403
    assert replay.json()['message'] == 'Token invalid or expired'


def test_rotated_refresh_token_is_the_stored_one(client, make_user, session_factory) -> None:
    alice = make_user('alice')

    rotated = client.post(f'{API}/users/refresh-token', json={'refreshToken': alice.refresh_token})
    new_token = rotated.json()['data']['refreshToken']

    assert _stored_refresh_token(session_factory, alice.id) == new_token
    assert client.post(f'{API}/users/refresh-token', json={'refreshToken': new_token}).status_code == 200


def test_refresh_token_read_from_cookie(client, make_user) -> None:
    alice = make_user('alice')

    response = client.post(
        f'{API}/users/refresh-token',
        headers={'Cookie': f'refreshToken={alice.refresh_token}'},
    )

    assert response.status_code == 200
    assert response.json()['data']['accessToken']


def test_refresh_without_token_is_401(client) -> None:
    response = client.post(f'{API}/users/refresh-token')

    assert response.status_code == 401


def test_refresh_with_malformed_token_is_403(client) -> None:
    response = client.post(f'{API}/users/refresh-token', json={'refreshToken': 'abc.def.ghi'})

    assert response.status_code == 403
    assert response.json()['message'] == 'Token invalid or expired'


def test_logout_unsets_refresh_token_and_clears_cookies(client, make_user, session_factory) -> None:
    alice = make_user('alice')

    response = client.post(f'{API}/users/logout', headers=alice.headers)
    cookies = response.headers.get_list('set-cookie')

    assert response.status_code == 200
    assert _stored_refresh_token(session_factory, alice.id) is None
    assert any(c.startswith('accessToken=') and 'Max-Age=0' in c for c in cookies)
    assert any(c.startswith('refreshToken=') and 'Max-Age=0' in c for c in cookies)


def test_refresh_after_logout_is_403(client, make_user) -> None:
    alice = make_user('alice')
    client.post(f'{API}/users/logout', headers=alice.headers)

    response = client.post(f'{API}/users/refresh-token', json={'refreshToken': alice.refresh_token})

    assert response.status_code == 403


def test_logout_is_idempotent(client, make_user) -> None:
    alice = make_user('alice')

    assert client.post(f'{API}/users/logout', headers=alice.headers).status_code == 200
    assert client.post(f'{API}/users/logout', headers=alice.headers).status_code == 200


def test_logout_requires_session(client) -> None:
    assert client.post(f'{API}/users/logout').status_code == 401


def test_new_login_supersedes_previous_refresh_token(client, make_user) -> None:
    alice = make_user('alice')
    _login(client, alice.email, alice.password)

    response = client.post(f'{API}/users/refresh-token', json={'refreshToken': alice.refresh_token})

    assert response.status_code == 403


def test_concurrent_rotation_keeps_only_the_last_written_token(client, make_user, session_factory) -> None:
    alice = make_user('alice')
    first_session = session_factory()
    second_session = session_factory()
    try:
        # both requests verified the same stored token before either rotated it
        first_user = first_session.query(User).filter(User.id == alice.id).one()
        second_user = second_session.query(User).filter(User.id == alice.id).one()
        assert first_user.refresh_token == second_user.refresh_token == alice.refresh_token

        _, earlier = issue_token_pair(first_session, first_user)
        _, later = issue_token_pair(second_session, second_user)
    finally:
        first_session.close()
        second_session.close()

    rejected = client.post(f'{API}/users/refresh-token', json={'refreshToken': earlier})
    accepted = client.post(f'{API}/users/refresh-token', json={'refreshToken': later})

    assert _stored_refresh_token(session_factory, alice.id) != earlier
    assert rejected.status_code == 403
    assert rejected.json()['message'] == 'Token invalid or expired'
    assert accepted.status_code == 200


# ---------------------------------------------------------------------------
# password / profile
# ---------------------------------------------------------------------------


def test_change_password_requires_old_password(client, make_user) -> None:
    alice = make_user('alice')

    response = client.post(
        f'{API}/users/change-password',
        headers=alice.headers,
        json={'oldPassword': 'wrong', 'newPassword': 'brand-new'},
    )

    assert response.status_code == 401
    assert _login(client, alice.email, alice.password).status_code == 200


def test_change_password_switches_login_credentials(client, make_user) -> None:
    alice = make_user('alice')

    response = client.post(
        f'{API}/users/change-password',
        headers=alice.headers,
        json={'oldPassword': alice.password, 'newPassword': 'brand-new'},
    )

    assert response.status_code == 200
    assert _login(client, alice.email, alice.password).status_code == 401
    assert _login(client, alice.email, 'brand-new').status_code == 200


def test_get_user_by_id(client, make_user) -> None:
    alice = make_user('alice')
    bob = make_user('bob')

    found = client.get(f'{API}/users/profile/{bob.id}', headers=alice.headers)
    missing = client.get(f'{API}/users/profile/9999', headers=alice.headers)

    assert found.status_code == 200
    assert found.json()['data']['username'] == 'bob'
    assert missing.status_code == 404


def test_update_profile_changes_only_given_fields(client, make_user) -> None:
    alice = make_user('alice')

    response = client.patch(
        f'{API}/users/update-profile',
        headers=alice.headers,
        json={'bio': 'Physics, year 2', 'profileImage': 'uploads/alice.png'},
    )
    data = response.json()['data']

    assert response.status_code == 200
    assert data['bio'] == 'Physics, year 2'
    assert data['profileImage'] == 'uploads/alice.png'
    assert data['name'] == 'Alice'


def test_update_profile_requires_some_field(client, make_user) -> None:
    alice = make_user('alice')

    response = client.patch(f'{API}/users/update-profile', headers=alice.headers, json={})

    assert response.status_code == 400


def test_update_profile_rejects_email_of_another_account(client, make_user) -> None:
    alice = make_user('alice')
    bob = make_user('bob')

    response = client.patch(f'{API}/users/update-profile', headers=alice.headers, json={'email': bob.email})

    assert response.status_code == 409


def test_update_profile_blank_email_keeps_current(client, make_user) -> None:
    alice = make_user('alice')

    response = client.patch(
        f'{API}/users/update-profile',
        headers=alice.headers,
        json={'name': 'Alice Liddell', 'email': ''},
    )

    assert response.status_code == 200
    assert response.json()['data']['name'] == 'Alice Liddell'
    assert response.json()['data']['email'] == alice.email


def test_search_matches_username_and_name(client, make_user) -> None:
    alice = make_user('alice')
    make_user('alicia')
    make_user('bob')

    response = client.get(f'{API}/users/search', params={'query': 'ALI'}, headers=alice.headers)
    usernames = {user['username'] for user in response.json()['data']}

    assert response.status_code == 200
    assert usernames == {'alice', 'alicia'}


def test_search_requires_query(client, make_user) -> None:
    alice = make_user('alice')

    response = client.get(f'{API}/users/search', params={'query': '  '}, headers=alice.headers)

    assert response.status_code == 400


# ---------------------------------------------------------------------------
# error envelope
# ---------------------------------------------------------------------------


def test_unexpected_error_becomes_500_envelope(client, make_user, monkeypatch) -> None:
    alice = make_user('alice')

    def _boom(*_args, **_kwargs):
        raise RuntimeError('serializer exploded')

    monkeypatch.setattr(users_router, 'serialize', _boom)
    response = client.get(f'{API}/users/profile', headers=alice.headers)

    assert response.status_code == 500
    assert response.json() == {
        'statusCode': 500,
        'data': None,
        'message': 'Internal Server Error',
        'success': False,
        'errors': [],
    }
