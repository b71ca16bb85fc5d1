from conftest import login


def _events(sio_client, name):
    return [pkt for pkt in sio_client.get_received('/ws') if pkt['name'] == name]


def test_socket_connect_and_ping(sio_client):
    assert sio_client.is_connected('/ws')
    assert _events(sio_client, 'connected')

    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    pongs = _events(sio_client, 'pong')
    assert pongs and pongs[0]['args'][0] == {'n': 1}


def test_join_requires_an_existing_session(sio_client):
    sio_client.get_received('/ws')  # flush
    sio_client.emit('join_session', {'session_id': 'abc'}, namespace='/ws')
    assert _events(sio_client, 'error')[0]['args'][0]['message'] == 'session_id is required'

    sio_client.emit('join_session', {'session_id': 77}, namespace='/ws')
    assert _events(sio_client, 'error')


def test_moves_and_abandon_are_broadcast_to_the_session_room(flask_app, sio_client, clock, players):
    alice = flask_app.test_client()
    login(alice, players['alice'])
    session_id = alice.post('/api/sessions', json={'ai_difficulty': 'Easy'}).get_json()['session']['id']

    sio_client.emit('join_session', {'session_id': session_id}, namespace='/ws')
    joined = _events(sio_client, 'joined')
    assert joined[0]['args'][0] == {'room': f'session:{session_id}', 'status': 'Ongoing'}

    alice.post(f'/api/sessions/{session_id}/moves', json={'from': 'B6', 'to': 'A5'})
    updates = _events(sio_client, 'session_update')
    assert len(updates) == 1
    payload = updates[0]['args'][0]
    assert payload['session_id'] == session_id
    assert payload['status'] == 'Ongoing'
    assert len(payload['moves']) == 2

    alice.post(f'/api/sessions/{session_id}/abandon')
    updates = _events(sio_client, 'session_update')
    assert updates[0]['args'][0]['status'] == 'Abandoned'

    sio_client.emit('leave_session', {'session_id': session_id}, namespace='/ws')
    assert _events(sio_client, 'left')
