"""Flask web interface and Socket.IO channel for the radio."""

import logging
from datetime import time
from flask import Flask, request, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO, emit

from .assets import AssetStore, AssetStoreError
from .broadcast import STATE_EVENT
from .config import config
from .models import (
    get_session, Track, AdScheduleEntry, ROLE_SONG, ROLE_AD,
    parse_weekdays, format_weekdays,
)
from .probe import probe_duration, resolve_duration
from .state import PlayoutState

# Initialize Flask app
app = Flask(__name__)
app.config['SECRET_KEY'] = config.SECRET_KEY
app.config['MAX_CONTENT_LENGTH'] = config.MAX_UPLOAD_MB * 1024 * 1024
CORS(app)
socketio = SocketIO(app, cors_allowed_origins=config.CORS_ORIGINS)

assets = AssetStore()

# Global reference to the engine (set by app.py)
_engine = None

logger = logging.getLogger(__name__)

def set_engine(engine):
    """Set the engine that HTTP and Socket.IO handlers drive."""
    global _engine
    _engine = engine

def get_state_data():
    """Current playout snapshot with publish-time fields."""
    if _engine is None:
        data = PlayoutState().to_dict()
        data['listeners'] = 0
        return data
    return _engine.sink.payload(_engine.snapshot())

def reload_catalog(playlist=False, ad_schedule=False):
    """Refresh the engine's view after a catalog mutation."""
    if _engine is None:
        return
    if playlist:
        _engine.reload_playlist()
    if ad_schedule:
        _engine.reload_ad_schedule()

class ValidationError(ValueError):
    pass

def _require(data, fields):
    if not data:
        raise ValidationError('No data provided')
    for field in fields:
        if field not in data or data[field] in (None, ''):
            raise ValidationError(f'Missing required field: {field}')

def _positive_int(value, name):
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be an integer')
    if number <= 0:
        raise ValidationError(f'{name} must be positive')
    return number

def _flag(data, name, default=True):
    value = data.get(name, default)
    if not isinstance(value, bool):
        raise ValidationError(f'{name} must be true or false')
    return value

def _create_track(data, role):
    _require(data, ['title', 'file_url', 'duration'])
    track = Track(
        role=role,
        title=data['title'],
        artist=data.get('artist') if role == ROLE_SONG else None,
        genre=data.get('genre') if role == ROLE_SONG else None,
        file_url=data['file_url'],
        duration=_positive_int(data['duration'], 'duration'),
        is_active=_flag(data, 'is_active'),
    )
    with get_session() as session:
        session.add(track)
        session.flush()
        return track.to_dict()

def _delete_track(track_id, role):
    with get_session() as session:
        track = session.get(Track, track_id)
        if not track or track.role != role:
            return False
        session.delete(track)
        return True

def _list_tracks(role):
    with get_session() as session:
        tracks = (
            session.query(Track)
            .filter_by(role=role)
            .order_by(Track.created_at.desc(), Track.id.desc())
            .all()
        )
        return [t.to_dict() for t in tracks]

@app.errorhandler(ValidationError)
def handle_validation_error(e):
    return jsonify({'error': str(e)}), 400

@app.errorhandler(AssetStoreError)
def handle_asset_error(e):
    logger.error(f"❌ Asset storage error: {e}")
    return jsonify({'error': str(e)}), 502

# Radio state and control
@app.route('/api/radio/state')
def get_state():
    """Get the current playout state."""
    return jsonify(get_state_data())

@app.route('/api/radio/skip', methods=['POST'])
def skip_track():
    if _engine is None or not _engine.next_track():
        return jsonify({'error': 'Nothing is playing'}), 409
    return jsonify({'success': True})

@app.route('/api/radio/pause', methods=['POST'])
def pause_radio():
    if _engine is None:
        return jsonify({'error': 'Radio is not running'}), 503
    _engine.pause()
    return jsonify({'success': True, 'isPlaying': False})

@app.route('/api/radio/resume', methods=['POST'])
def resume_radio():
    if _engine is None:
        return jsonify({'error': 'Radio is not running'}), 503
    _engine.resume()
    return jsonify({'success': True, 'isPlaying': True})

# Songs
@app.route('/api/songs')
def get_songs():
    return jsonify(_list_tracks(ROLE_SONG))

@app.route('/api/songs', methods=['POST'])
def add_song():
    song = _create_track(request.get_json(silent=True), ROLE_SONG)
    logger.info(f"Created song: {song['title']}")
    reload_catalog(playlist=True)
    socketio.emit('catalog-updated', {'kind': 'songs'})
    return jsonify(song), 201

@app.route('/api/songs/<int:song_id>', methods=['DELETE'])
def delete_song(song_id):
    if not _delete_track(song_id, ROLE_SONG):
        return jsonify({'error': 'Song not found'}), 404
    logger.info(f"Deleted song {song_id}")
    reload_catalog(playlist=True)
    socketio.emit('catalog-updated', {'kind': 'songs'})
    return jsonify({'success': True})

# Ads
@app.route('/api/ads')
def get_ads():
    return jsonify(_list_tracks(ROLE_AD))

@app.route('/api/ads', methods=['POST'])
def add_ad():
    ad = _create_track(request.get_json(silent=True), ROLE_AD)
    logger.info(f"Created ad: {ad['title']}")
    reload_catalog(ad_schedule=True)
    socketio.emit('catalog-updated', {'kind': 'ads'})
    return jsonify(ad), 201

@app.route('/api/ads/<int:ad_id>', methods=['DELETE'])
def delete_ad(ad_id):
    if not _delete_track(ad_id, ROLE_AD):
        return jsonify({'error': 'Ad not found'}), 404
    logger.info(f"Deleted ad {ad_id} and its schedule entries")
    reload_catalog(ad_schedule=True)
    socketio.emit('catalog-updated', {'kind': 'ads'})
    return jsonify({'success': True})

# Ad schedule
@app.route('/api/ad-schedule')
def get_ad_schedule():
    with get_session() as session:
        entries = session.query(AdScheduleEntry).order_by(AdScheduleEntry.scheduled_time).all()
        return jsonify([e.to_dict() for e in entries])

@app.route('/api/ad-schedule', methods=['POST'])
def add_ad_schedule():
    data = request.get_json(silent=True)
    _require(data, ['ad_id', 'scheduled_time'])

    try:
        scheduled_time = time.fromisoformat(data['scheduled_time']).replace(second=0, microsecond=0)
    except (TypeError, ValueError):
        raise ValidationError('Invalid time format. Use HH:MM format')
    try:
        days = parse_weekdays(data.get('days_of_week', [1, 2, 3, 4, 5, 6, 7]))
    except (TypeError, ValueError):
        raise ValidationError('days_of_week must contain weekdays 1-7 (0 is Sunday)')
    if not days:
        raise ValidationError('days_of_week must not be empty')
    is_active = _flag(data, 'is_active')

    with get_session() as session:
        ad = session.get(Track, data['ad_id'])
        if not ad or ad.role != ROLE_AD:
            return jsonify({'error': 'Ad not found'}), 404
        entry = AdScheduleEntry(
            ad=ad,
            scheduled_time=scheduled_time,
            days_of_week=format_weekdays(days),
            is_active=is_active,
        )
        session.add(entry)
        session.flush()
        result = entry.to_dict()

    logger.info(f"Scheduled ad {result['ad_id']} at {result['scheduled_time']} on {result['days_of_week']}")
    reload_catalog(ad_schedule=True)
    socketio.emit('catalog-updated', {'kind': 'ad-schedule'})
    return jsonify(result), 201

@app.route('/api/ad-schedule/<int:entry_id>', methods=['DELETE'])
def delete_ad_schedule(entry_id):
    with get_session() as session:
        entry = session.get(AdScheduleEntry, entry_id)
        if not entry:
            return jsonify({'error': 'Schedule entry not found'}), 404
        session.delete(entry)

    reload_catalog(ad_schedule=True)
    socketio.emit('catalog-updated', {'kind': 'ad-schedule'})
    return jsonify({'success': True})

@app.route('/api/play-ad/<int:ad_id>', methods=['POST'])
def play_ad_now(ad_id):
    """Interrupt the current song with an ad."""
    if _engine is None:
        return jsonify({'error': 'Radio is not running'}), 503
    ad = _engine.catalog.get_ad(ad_id)
    if not ad:
        return jsonify({'error': 'Ad not found'}), 404
    if not _engine.play_ad(ad):
        return jsonify({'error': 'Nothing is playing'}), 409
    return jsonify({'success': True, 'message': 'Ad started'})

# Uploads
def _upload(role):
    upload = request.files.get('file')
    if not upload:
        raise ValidationError('No file attached')

    form = request.form
    required = ['title', 'artist'] if role == ROLE_SONG else ['title']
    _require(form, required)

    logger.info(f"📤 Uploading {role}: {form['title']}")
    data = upload.read()
    file_url = assets.upload(data, upload.filename or 'upload.mp3', 'songs' if role == ROLE_SONG else 'ads')

    default = config.DEFAULT_SONG_DURATION if role == ROLE_SONG else config.DEFAULT_AD_DURATION
    duration = resolve_duration(probe_duration(data), form.get('duration'), default)

    return _create_track({
        'title': form['title'],
        'artist': form.get('artist'),
        'genre': form.get('genre') or None,
        'file_url': file_url,
        'duration': duration,
    }, role)

@app.route('/api/upload/song', methods=['POST'])
def upload_song():
    song = _upload(ROLE_SONG)
    reload_catalog(playlist=True)
    socketio.emit('catalog-updated', {'kind': 'songs'})
    return jsonify({'success': True, 'song': song}), 201

@app.route('/api/upload/ad', methods=['POST'])
def upload_ad():
    ad = _upload(ROLE_AD)
    reload_catalog(ad_schedule=True)
    socketio.emit('catalog-updated', {'kind': 'ads'})
    return jsonify({'success': True, 'ad': ad}), 201

# WebSocket events
@socketio.on('connect')
def handle_connect():
    """Count the listener and send the current state."""
    if _engine is not None:
        count = _engine.sink.listener_connected()
        logger.info(f"🔌 Listener connected. Total: {count}")
    emit(STATE_EVENT, get_state_data())

@socketio.on('disconnect')
def handle_disconnect(*args):
    if _engine is not None:
        count = _engine.sink.listener_disconnected()
        logger.info(f"🔌 Listener disconnected. Total: {count}")

@socketio.on('admin-skip-track')
def handle_skip_track(*args):
    if _engine is not None and _engine.is_initialized:
        if _engine.next_track():
            logger.info("⏭️ Admin skipped the current item")

@socketio.on('admin-play-ad')
def handle_play_ad(ad_id):
    if _engine is None:
        return
    try:
        ad = _engine.catalog.get_ad(int(ad_id))
    except (TypeError, ValueError):
        ad = None
    if not ad:
        logger.warning(f"Admin requested unknown ad: {ad_id}")
        return
    if _engine.play_ad(ad):
        logger.info(f"📢 Admin started ad: {ad.title}")
