#!/usr/bin/env python3
"""
Pytest configuration and fixtures
"""

import pytest
import os
import tempfile
from datetime import datetime, timedelta
from videohub import create_app, db
from videohub.models import (User, Channel, Video, Playlist, PlaylistItem, WatchLater, WatchHistory,
                             Like, Dislike, Comment, VideoTag)
from videohub.store import VideoStore


@pytest.fixture
def database_url():
    """Temporary SQLite file shared by the app, worker threads and CLI runs"""
    db_fd, db_path = tempfile.mkstemp(suffix='.db')
    yield f'sqlite:///{db_path}'
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def app(database_url):
    """Create application for testing"""
    app = create_app('testing', SQLALCHEMY_DATABASE_URI=database_url)
    
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def store(app):
    return VideoStore(db.session)


def add_channel(name, handle, videos=0, duration=600, views=1000, published_at=None):
    """Create a channel with ``videos`` videos and keep its aggregates in sync"""
    channel = Channel(name=name, handle=handle)
    db.session.add(channel)
    db.session.flush()
    
    published_at = published_at or datetime(2024, 1, 1)
    for i in range(videos):
        db.session.add(Video(
            channel_id=channel.id,
            title=f'{name} video #{i + 1}',
            duration=duration,
            views=views,
            published_at=published_at + timedelta(days=i)
        ))
    channel.video_count = videos
    channel.total_views = videos * views
    db.session.flush()
    return channel


def add_dependents(video, user, playlist):
    """Attach one row of every dependent table to ``video``"""
    db.session.add_all([
        PlaylistItem(playlist_id=playlist.id, video_id=video.id),
        WatchLater(user_id=user.id, video_id=video.id),
        WatchHistory(user_id=user.id, video_id=video.id),
        Like(user_id=user.id, video_id=video.id),
        Dislike(user_id=user.id, video_id=video.id),
        Comment(user_id=user.id, video_id=video.id, text='Great video!'),
        VideoTag(video_id=video.id, tag='test'),
    ])


@pytest.fixture
def user(app):
    user = User(username='viewer', email='viewer@example.com')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def seeded(app, user):
    """Two populated channels, one empty channel, every video fully referenced"""
    alpha = add_channel('Alpha', 'UCalpha', videos=3, views=100)
    beta = add_channel('Beta', 'UCbeta', videos=2, views=50)
    add_channel('Gamma', 'UCgamma', videos=0)
    
    playlist = Playlist(user_id=user.id, title='Favourites')
    db.session.add(playlist)
    db.session.flush()
    
    for video in Video.query.all():
        add_dependents(video, user, playlist)
    db.session.commit()
    
    return {'alpha': alpha.id, 'beta': beta.id, 'videos': 5, 'channels': 3}
