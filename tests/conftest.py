import pytest

from app import create_app


@pytest.fixture
def app(tmp_path):
    # Isolated database and backup directory per test
    app = create_app({
        'TESTING': True,
        'DATABASE': str(tmp_path / 'garden.db'),
        'BACKUP_DIR': str(tmp_path / 'backups'),
        'SECRET_KEY': 'dev-key-for-testing',
        'OPERATORS': ['admin'],
    })
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def call_tool(client):
    """POST a tool call as a given user; returns (status_code, json)."""
    def _call(name, args=None, user='alice'):
        headers = {'X-User-Id': user} if user else {}
        rv = client.post(f'/tools/{name}', json=args or {}, headers=headers)
        return rv.status_code, rv.get_json()
    return _call


@pytest.fixture
def garden(call_tool):
    """A 4x4 garden "H" owned by alice."""
    status, body = call_tool('create_garden', {'id': 'H', 'name': 'Home Bed', 'cols': 4, 'rows': 4})
    assert status == 200, body
    return body['garden_id']
