from concurrent.futures import ThreadPoolExecutor

from flask import jsonify, current_app

from videohub import db
from videohub.admin import bp
from videohub.models import Video, Channel
from videohub.store import VideoStore

def _count_rows(app, model):
    """Count rows of ``model`` from a worker thread, in its own app context and session"""
    with app.app_context():
        return VideoStore(db.session).count(model)

@bp.route('/stats', methods=['GET'])
def admin_stats():
    """Video and channel totals for the admin dashboard"""
    app = current_app._get_current_object()
    try:
        with ThreadPoolExecutor(max_workers=app.config.get('STATS_WORKERS', 2)) as executor:
            video_future = executor.submit(_count_rows, app, Video)
            channel_future = executor.submit(_count_rows, app, Channel)
            video_count = video_future.result()
            channel_count = channel_future.result()

        return jsonify({
            'videos': video_count,
            'channels': channel_count
        })
    except Exception as e:
        current_app.logger.error(f"Failed to get stats: {e}")
        return jsonify({'videos': 0, 'channels': 0}), 500
