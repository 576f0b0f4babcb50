#!/usr/bin/env python3
"""
Tests for the manage.py maintenance commands
"""

import pytest
from unittest.mock import patch
from click.testing import CliRunner
from sqlalchemy.exc import OperationalError

from manage import cli
from videohub import db
from videohub.models import Channel, Video, PlaylistItem
from videohub.store import VideoStore
from videohub.maintenance import purge_all_videos
from tests.conftest import add_channel


@pytest.fixture
def run(database_url):
    """Invoke a maintenance command against the test database"""
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, ['--config', 'testing', '--database-url', database_url, *args])

    return invoke


class TestClearVideos:

    def test_purges_everything(self, run, store, seeded):
        result = run('clear-videos')

        assert result.exit_code == 0, result.output
        assert '✅ All videos deleted!' in result.output
        assert 'videos: 5 deleted' in result.output
        assert store.count(Video) == 0
        assert store.count(PlaylistItem) == 0
        assert store.count(Channel, Channel.video_count != 0) == 0

    def test_atomic_flag(self, run, store, seeded):
        with patch('manage.purge_all_videos', wraps=purge_all_videos) as purge:
            result = run('clear-videos', '--atomic')

        assert result.exit_code == 0, result.output
        assert purge.call_args.kwargs['atomic'] is True
        assert store.count(Video) == 0

    def test_first_step_failure_exits_non_zero(self, run, store, seeded):
        error = OperationalError('DELETE FROM playlist_items', {}, Exception('connection refused'))
        with patch.object(VideoStore, 'delete_many', side_effect=error) as delete_many, \
                patch.object(VideoStore, 'update_many') as update_many:
            result = run('clear-videos')

        assert result.exit_code == 1
        assert '❌ Error' in result.output
        assert delete_many.call_count == 1
        update_many.assert_not_called()
        assert store.count(Video) == seeded['videos']

    def test_unreachable_database_exits_non_zero(self, tmp_path):
        missing = tmp_path / 'missing' / 'videohub.db'
        result = CliRunner().invoke(cli, ['--config', 'testing', '--database-url', f'sqlite:///{missing}', 'clear-videos'])

        assert result.exit_code == 1
        assert '❌ Error' in result.output


class TestCountVideos:

    def test_report(self, run, seeded):
        result = run('count-videos')

        assert result.exit_code == 0, result.output
        assert 'Videos: 5' in result.output
        assert 'Channels: 3' in result.output
        assert 'Alpha: 3 videos' in result.output
        assert 'Beta: 2 videos' in result.output
        assert 'Gamma' not in result.output


class TestDeleteChannelVideos:

    def test_deletes_channel_videos(self, run, store, seeded):
        result = run('delete-channel-videos', '@UCbeta')

        assert result.exit_code == 0, result.output
        assert 'Channel: Beta (@UCbeta)' in result.output
        assert '"Beta video #1" (10:00)' in result.output
        assert 'Deleted 2 videos' in result.output
        assert store.count(Video) == 3

    def test_unknown_channel(self, run, seeded):
        result = run('delete-channel-videos', '@nobody')

        assert result.exit_code == 1
        assert 'Channel @nobody not found' in result.output

    def test_missing_argument(self, run):
        result = run('delete-channel-videos')
        assert result.exit_code == 2


class TestDeleteShortVideos:

    def test_threshold_option(self, run, store, seeded):
        result = run('delete-short-videos', '--threshold', '601')

        assert result.exit_code == 0, result.output
        assert 'Found 5 videos to delete' in result.output
        assert 'Updated 2 channel(s)' in result.output
        assert store.count(Video) == 0

    def test_default_threshold(self, run, store, seeded):
        result = run('delete-short-videos')

        assert result.exit_code == 0, result.output
        assert 'No videos to delete!' in result.output
        assert store.count(Video) == 5


class TestClearOldChannels:

    def test_lists_without_deleting(self, run, store, seeded):
        add_channel('Old Style', 'oldstyle', videos=1)
        db.session.commit()

        result = run('clear-old-channels')

        assert result.exit_code == 0, result.output
        assert 'Old Style (handle: oldstyle, videos: 1)' in result.output
        assert 'Run again with --delete' in result.output
        assert store.count(Channel) == 4

    def test_delete_flag(self, run, store, seeded):
        add_channel('Old Style', 'oldstyle', videos=1)
        db.session.commit()

        result = run('clear-old-channels', '--delete')

        assert result.exit_code == 0, result.output
        assert 'Deleted 1 old channels' in result.output
        assert store.count(Channel) == 3

    def test_all_channels_current(self, run, seeded):
        result = run('clear-old-channels')
        assert 'All channels are in the correct format!' in result.output


class TestCheckVideos:

    def test_report(self, run, seeded):
        result = run('check-videos', '--limit', '10')

        assert result.exit_code == 0, result.output
        assert 'Alpha: 3' in result.output
        assert 'Beta: 2' in result.output
        assert 'Alpha: 2024-01-03 - Alpha video #3...' in result.output


class TestOptionValidation:

    @pytest.mark.parametrize('limit', ['0', '-1'])
    def test_check_videos_limit_must_be_positive(self, run, limit):
        result = run('check-videos', f'--limit={limit}')
        assert result.exit_code == 2

    def test_short_video_threshold_cannot_be_negative(self, run, store, seeded):
        result = run('delete-short-videos', '--threshold=-5')

        assert result.exit_code == 2
        assert store.count(Video) == seeded['videos']


def test_logging_configured_from_selected_config(run):
    with patch('manage.configure_logging') as configure_logging:
        result = run('count-videos')

    assert result.exit_code == 0, result.output
    configure_logging.assert_called_once_with('DEBUG')
