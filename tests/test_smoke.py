def test_index(client):
    """The service index lists the registered tools."""
    rv = client.get('/')
    assert rv.status_code == 200
    body = rv.get_json()
    assert body['name'] == 'Square Foot Garden Server'
    assert 'list_gardens' in body['tools']
    assert body['tools'] == sorted(body['tools'])


def test_health(client):
    rv = client.get('/health')
    assert rv.status_code == 200
    assert rv.get_json()['database'] == 'ok'


def test_tool_listing(client):
    rv = client.get('/tools/')
    assert rv.status_code == 200
    tools = rv.get_json()['tools']
    assert len(tools) == 10
    assert all(t['description'] for t in tools)
