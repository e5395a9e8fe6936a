def _names(received):
    return [pkt['name'] for pkt in received]


def test_socket_connect_and_join(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')
    sio_client.get_received('/ws')

    sio_client.emit('join_lobby', {'lobby_code': 123456}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert 'joined' in _names(received)
    assert received[-1]['args'][0] == {'room': 'lobby:123456'}


def test_join_without_code_is_an_error(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_lobby', {}, namespace='/ws')
    assert _names(sio_client.get_received('/ws')) == ['error']


def test_ping_pong(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert _names(received) == ['pong']
    assert received[0]['args'][0] == {'n': 1}


def test_lobby_changes_push_state_update(client, sio_client):
    res = client.post('/api/lobbies/create', json={'name': 'Alice'})
    code = res.get_json()['code']

    sio_client.emit('join_lobby', {'lobby_code': code}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    client.post('/api/lobbies/join', json={'code': code, 'name': 'Bob'})
    received = sio_client.get_received('/ws')
    assert 'state_update' in _names(received)
    update = next(pkt for pkt in received if pkt['name'] == 'state_update')
    assert update['args'][0] == {'lobby_code': code}

    sio_client.emit('leave_lobby', {'lobby_code': code}, namespace='/ws')
    assert 'left' in _names(sio_client.get_received('/ws'))
    client.post('/api/lobbies/join', json={'code': code, 'name': 'Cara'})
    assert 'state_update' not in _names(sio_client.get_received('/ws'))
