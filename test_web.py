"""Tests for the HTTP control surface and Socket.IO channel."""

import io

import pytest

from radio_playout import web
from radio_playout.catalog import CatalogCache
from radio_playout.state import STATUS_EMPTY, STATUS_PLAYING_AD

@pytest.fixture
def radio(db, make_engine):
    engine = make_engine(CatalogCache())
    engine.initialize()
    web.set_engine(engine)
    yield engine
    web.set_engine(None)

@pytest.fixture
def client(radio):
    web.app.config['TESTING'] = True
    return web.app.test_client()

def add_song(client, title, duration=120):
    res = client.post('/api/songs', json={
        'title': title, 'artist': 'Band', 'file_url': f'https://media.test/{title}.mp3',
        'duration': duration,
    })
    assert res.status_code == 201
    return res.get_json()

def add_ad(client, title, duration=30):
    res = client.post('/api/ads', json={
        'title': title, 'file_url': f'https://media.test/{title}.mp3', 'duration': duration,
    })
    assert res.status_code == 201
    return res.get_json()

def test_state_when_empty(client):
    data = client.get('/api/radio/state').get_json()
    assert data['status'] == STATUS_EMPTY
    assert data['currentTrack'] is None
    assert data['listeners'] == 0

def test_adding_song_starts_playout(client, radio):
    song = add_song(client, 'first')

    assert radio.state.current_track.id == song['id']
    data = client.get('/api/radio/state').get_json()
    assert data['currentTrack']['title'] == 'first'
    assert data['isPlaying'] is True

def test_song_validation(client):
    res = client.post('/api/songs', json={'title': 'no url', 'duration': 10})
    assert res.status_code == 400
    assert 'file_url' in res.get_json()['error']

    res = client.post('/api/songs', json={'title': 't', 'file_url': 'u', 'duration': 0})
    assert res.status_code == 400

def test_list_and_delete_songs(client, radio):
    first = add_song(client, 'first')
    second = add_song(client, 'second')

    titles = [s['title'] for s in client.get('/api/songs').get_json()]
    assert titles == ['second', 'first']

    assert client.delete(f"/api/songs/{first['id']}").status_code == 200
    assert [s.id for s in radio.state.playlist] == [second['id']]

    assert client.delete(f"/api/songs/{first['id']}").status_code == 404

def test_deleting_last_song_empties_engine(client, radio):
    song = add_song(client, 'only')
    client.delete(f"/api/songs/{song['id']}")
    assert radio.state.status == STATUS_EMPTY

def test_ad_schedule_crud_reloads_engine(client, radio):
    spot = add_ad(client, 'spot')

    res = client.post('/api/ad-schedule', json={
        'ad_id': spot['id'], 'scheduled_time': '10:00', 'days_of_week': [0, 3],
    })
    assert res.status_code == 201
    entry = res.get_json()
    assert entry['days_of_week'] == [3, 7]
    assert entry['ad']['title'] == 'spot'

    assert len(radio.ad_schedule) == 1
    assert radio.ad_schedule[0].weekdays == frozenset({3, 7})

    listed = client.get('/api/ad-schedule').get_json()
    assert [e['scheduled_time'] for e in listed] == ['10:00']

    assert client.delete(f"/api/ad-schedule/{entry['id']}").status_code == 200
    assert radio.ad_schedule == []

def test_ad_schedule_validation(client):
    spot = add_ad(client, 'spot')

    res = client.post('/api/ad-schedule', json={'ad_id': spot['id'], 'scheduled_time': 'noon'})
    assert res.status_code == 400
    res = client.post('/api/ad-schedule', json={
        'ad_id': spot['id'], 'scheduled_time': '10:00', 'days_of_week': [],
    })
    assert res.status_code == 400
    res = client.post('/api/ad-schedule', json={
        'ad_id': spot['id'], 'scheduled_time': '10:00', 'days_of_week': [9],
    })
    assert res.status_code == 400
    res = client.post('/api/ad-schedule', json={'ad_id': 999, 'scheduled_time': '10:00'})
    assert res.status_code == 404

def test_deleting_ad_drops_its_schedule(client, radio):
    spot = add_ad(client, 'spot')
    client.post('/api/ad-schedule', json={'ad_id': spot['id'], 'scheduled_time': '10:00'})
    assert len(radio.ad_schedule) == 1

    assert client.delete(f"/api/ads/{spot['id']}").status_code == 200
    assert radio.ad_schedule == []
    assert client.get('/api/ad-schedule').get_json() == []

def test_play_ad_now(client, radio):
    add_song(client, 'tune')
    spot = add_ad(client, 'spot')

    res = client.post(f"/api/play-ad/{spot['id']}")
    assert res.status_code == 200
    assert radio.state.status == STATUS_PLAYING_AD
    assert radio.state.current_ad.id == spot['id']

def test_play_unknown_ad(client, radio):
    add_song(client, 'tune')
    assert client.post('/api/play-ad/999').status_code == 404
    assert not radio.state.is_playing_ad

def test_play_ad_with_nothing_on_air(client):
    spot = add_ad(client, 'spot')
    assert client.post(f"/api/play-ad/{spot['id']}").status_code == 409

def test_skip_pause_resume(client, radio):
    add_song(client, 'one')
    add_song(client, 'two')

    assert client.post('/api/radio/skip').status_code == 200
    assert radio.state.current_track.title == 'two'

    client.post('/api/radio/pause')
    assert radio.state.is_playing is False
    client.post('/api/radio/resume')
    assert radio.state.is_playing is True

def test_upload_song_uses_probed_duration(client, radio, monkeypatch):
    uploaded = {}

    class FakeAssets:
        def upload(self, data, name, category):
            uploaded.update(data=data, name=name, category=category)
            return f'https://media.test/{category}/{name}'

    monkeypatch.setattr(web, 'assets', FakeAssets())
    monkeypatch.setattr(web, 'probe_duration', lambda data: 201)

    res = client.post('/api/upload/song', data={
        'title': 'Live', 'artist': 'Band', 'file': (io.BytesIO(b'ID3'), 'live.mp3'),
    }, content_type='multipart/form-data')

    assert res.status_code == 201
    song = res.get_json()['song']
    assert song['duration'] == 201
    assert song['file_url'] == 'https://media.test/songs/live.mp3'
    assert uploaded['data'] == b'ID3'
    assert radio.state.current_track.title == 'Live'

def test_upload_ad_falls_back_to_default_duration(client, monkeypatch):
    class FakeAssets:
        def upload(self, data, name, category):
            return f'https://media.test/{category}/{name}'

    monkeypatch.setattr(web, 'assets', FakeAssets())
    monkeypatch.setattr(web, 'probe_duration', lambda data: None)

    res = client.post('/api/upload/ad', data={
        'title': 'Promo', 'file': (io.BytesIO(b'ID3'), 'promo.mp3'),
    }, content_type='multipart/form-data')

    assert res.status_code == 201
    assert res.get_json()['ad']['duration'] == web.config.DEFAULT_AD_DURATION

def test_upload_requires_file(client):
    res = client.post('/api/upload/song', data={'title': 'x', 'artist': 'y'},
                      content_type='multipart/form-data')
    assert res.status_code == 400

def test_socket_connect_receives_state(client, radio):
    add_song(client, 'tune')

    socket = web.socketio.test_client(web.app)
    received = socket.get_received()
    states = [m for m in received if m['name'] == 'radio-state']
    assert len(states) == 1
    assert states[0]['args'][0]['currentTrack']['title'] == 'tune'
    assert states[0]['args'][0]['listeners'] == 1

    socket.disconnect()
    assert radio.sink.listener_count == 0

def test_socket_admin_controls(client, radio):
    add_song(client, 'one')
    add_song(client, 'two')
    spot = add_ad(client, 'spot')

    socket = web.socketio.test_client(web.app)
    socket.emit('admin-skip-track')
    assert radio.state.current_track.title == 'two'

    socket.emit('admin-play-ad', 999)
    assert not radio.state.is_playing_ad

    socket.emit('admin-play-ad', spot['id'])
    assert radio.state.current_ad.id == spot['id']
    socket.disconnect()

def test_active_flag_must_be_boolean(client, radio):
    res = client.post('/api/songs', json={
        'title': 'hidden', 'file_url': 'https://media.test/hidden.mp3', 'duration': 60,
        'is_active': 'false',
    })
    assert res.status_code == 400
    assert radio.state.playlist == ()

    spot = add_ad(client, 'spot')
    res = client.post('/api/ad-schedule', json={
        'ad_id': spot['id'], 'scheduled_time': '10:00', 'is_active': 'no',
    })
    assert res.status_code == 400

    res = client.post('/api/songs', json={
        'title': 'hidden', 'file_url': 'https://media.test/hidden.mp3', 'duration': 60,
        'is_active': False,
    })
    assert res.status_code == 201
    assert radio.state.playlist == ()
