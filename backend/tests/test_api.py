from conftest import join


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_health_reports_room_counts(client, sio_factory):
    res = client.get('/health')
    assert res.status_code == 200
    data = res.get_json()
    assert data['status'] == 'OK'
    assert 'timestamp' in data
    assert data['rooms'] == 0

    join(sio_factory(), 'HEALTH', 'Alice')
    data = client.get('/health').get_json()
    assert data['rooms'] == 1
    assert data['players'] == 1


def test_unknown_route_returns_json_404(client):
    res = client.get('/no/such/route')
    assert res.status_code == 404
    assert 'error' in res.get_json()


def test_unexpected_error_returns_json_500(flask_app):
    def boom():
        raise RuntimeError('kaboom')

    flask_app.add_url_rule('/boom', 'boom', boom)
    res = flask_app.test_client().get('/boom')
    assert res.status_code == 500
    assert res.get_json() == {'error': 'Internal server error'}
