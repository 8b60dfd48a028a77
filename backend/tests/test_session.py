from flask import g
from sqlalchemy import text

from jackofhearts import db
from jackofhearts.services.games import store


def _forget_cached_user():
    # The test app context outlives requests, so drop Flask-Login's per-context cache
    g.pop('_login_user', None)


def test_no_session_means_no_game(flask_app):
    res = flask_app.test_client().get('/api/session')
    assert res.status_code == 200
    assert res.get_json() == {'game_code': None, 'player_id': None, 'state': None}


def test_create_binds_session(flask_app):
    host = flask_app.test_client()
    created = host.post('/api/games/create', json={'name': 'Ana'}).get_json()
    _forget_cached_user()
    res = host.get('/api/session').get_json()
    assert res['game_code'] == created['game_code']
    assert res['player_id'] == created['player_id']
    assert res['state']['phase'] == 'lobby'


def test_bound_player_acts_without_explicit_id(flask_app):
    host = flask_app.test_client()
    code = host.post('/api/games/create', json={'name': 'Ana'}).get_json()['game_code']
    for name in ('Beto', 'Carla'):
        flask_app.test_client().post('/api/games/join', json={'game_code': code, 'name': name})
    _forget_cached_user()
    res = host.post(f'/api/games/{code}/start')
    assert res.status_code == 200
    assert res.get_json()['phase'] == 'playing'


def test_leave_clears_binding(flask_app):
    player = flask_app.test_client()
    player.post('/api/games/create', json={'name': 'Ana'})
    assert player.post('/api/session/leave').status_code == 200
    _forget_cached_user()
    assert player.get('/api/session').get_json()['game_code'] is None


def test_stale_binding_degrades_to_no_game(flask_app):
    player = flask_app.test_client()
    code = player.post('/api/games/create', json={'name': 'Ana'}).get_json()['game_code']
    # The game disappears behind the client's back
    db.session.delete(store.get_game(code))
    db.session.commit()
    _forget_cached_user()
    res = player.get('/api/session')
    assert res.status_code == 200
    assert res.get_json()['game_code'] is None
    _forget_cached_user()
    assert player.get('/api/session').get_json()['player_id'] is None


def test_malformed_game_degrades_to_no_game(flask_app):
    player = flask_app.test_client()
    code = player.post('/api/games/create', json={'name': 'Ana'}).get_json()['game_code']
    db.session.execute(text("UPDATE game SET phase = 'paused' WHERE code = :code"), {'code': code})
    db.session.commit()
    db.session.expire_all()
    _forget_cached_user()
    res = player.get('/api/session')
    assert res.status_code == 200
    assert res.get_json() == {'game_code': None, 'player_id': None, 'state': None}
    # The binding itself was dropped, not just hidden
    _forget_cached_user()
    with player.session_transaction() as sess:
        assert '_user_id' not in sess
