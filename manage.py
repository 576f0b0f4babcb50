#!/usr/bin/env python3
"""
Database maintenance commands.

    python manage.py count-videos
    python manage.py clear-videos --atomic
    python manage.py delete-channel-videos @mkbhd

Every command opens the store once, releases it on exit and exits with
status 1 on any failure.
"""
import logging
import os
import sys
from contextlib import contextmanager

import click
from flask import current_app

from config import config
from videohub import configure_logging
from videohub.store import open_store
from videohub.maintenance import (purge_all_videos, build_count_report, format_count_report,
                                  delete_channel_videos, delete_short_videos, find_legacy_channels,
                                  delete_legacy_channels, channel_distribution, latest_video_per_channel,
                                  format_duration, ChannelNotFound)

logger = logging.getLogger('manage')

@click.group()
@click.option('--config', 'config_name', default=None, help='Configuration name (development, testing, production).')
@click.option('--database-url', default=None, help='Override SQLALCHEMY_DATABASE_URI.')
@click.pass_context
def cli(ctx, config_name, database_url):
    """videohub database maintenance."""
    settings = config.get(config_name or os.environ.get('FLASK_ENV', 'development'), config['default'])
    configure_logging(settings.LOG_LEVEL)

    overrides = {}
    if database_url:
        overrides['SQLALCHEMY_DATABASE_URI'] = database_url
    ctx.obj = {'config_name': config_name, 'overrides': overrides}

@contextmanager
def store_session(ctx):
    """Open the store for one command and turn any failure into exit status 1"""
    try:
        with open_store(ctx.obj['config_name'], **ctx.obj['overrides']) as store:
            yield store
    except ChannelNotFound as e:
        click.echo(f'❌ {e}', err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception('Command failed')
        click.echo(f'❌ Error: {e}', err=True)
        sys.exit(1)

@cli.command()
@click.pass_context
def init_db(ctx):
    """Create any missing tables."""
    with store_session(ctx):
        click.echo('Initialized the database.')

@cli.command()
@click.option('--atomic', is_flag=True,
              help='Run every delete in one transaction (always on when PURGE_ATOMIC is set).')
@click.pass_context
def clear_videos(ctx, atomic):
    """Delete ALL videos and everything that references them."""
    with store_session(ctx) as store:
        atomic = atomic or current_app.config.get('PURGE_ATOMIC', False)

        click.echo('🗑️ Deleting all videos...')
        result = purge_all_videos(store, atomic=atomic)
        for table, count in result.deleted.items():
            click.echo(f'   ✓ {table}: {count} deleted')
        click.echo(f'   ✓ Reset stats on {result.channels_reset} channels')
        click.echo('✅ All videos deleted!')

@cli.command()
@click.pass_context
def count_videos(ctx):
    """Show video and channel counts."""
    with store_session(ctx) as store:
        report = build_count_report(store)
        click.echo(format_count_report(report))

@cli.command('delete-channel-videos')
@click.argument('handle')
@click.pass_context
def delete_channel_videos_cmd(ctx, handle):
    """Delete every video of the channel HANDLE (with or without @)."""
    with store_session(ctx) as store:
        click.echo(f'🔍 Looking for channel: @{handle.lstrip("@")}')
        result = delete_channel_videos(store, handle)

        click.echo(f'\n📺 Channel: {result.name} (@{result.handle})')
        click.echo(f'📊 Found {len(result.videos)} videos to delete')
        if not result.videos:
            click.echo('✅ No videos to delete!')
            return

        click.echo('\n📹 Deleted videos:')
        for index, video in enumerate(result.videos, start=1):
            click.echo(f'{index}. "{video.title}" ({format_duration(video.duration)})')
        click.echo(f'\n   ✓ Deleted {result.deleted["videos"]} videos')
        click.echo('   ✓ Updated channel stats')
        click.echo('\n✅ Successfully deleted all videos from this channel!')

@cli.command('delete-short-videos')
@click.option('--threshold', type=click.IntRange(min=0), default=None,
              help='Duration in seconds; shorter videos are deleted (defaults to SHORT_VIDEO_THRESHOLD).')
@click.pass_context
def delete_short_videos_cmd(ctx, threshold):
    """Delete videos shorter than the threshold."""
    with store_session(ctx) as store:
        if threshold is None:
            threshold = current_app.config.get('SHORT_VIDEO_THRESHOLD', 300)

        click.echo(f'🔍 Finding videos shorter than {format_duration(threshold)}...')
        result = delete_short_videos(store, threshold)
        click.echo(f'📊 Found {len(result.videos)} videos to delete')
        if not result.videos:
            click.echo('✅ No videos to delete!')
            return

        for index, video in enumerate(result.videos, start=1):
            click.echo(f'{index}. "{video.title}" ({format_duration(video.duration)})')
        click.echo(f'\n   ✓ Deleted {result.deleted["videos"]} videos')
        click.echo(f'   ✓ Updated {result.channels_updated} channel(s)')
        click.echo('\n✅ Successfully deleted short videos!')

@cli.command()
@click.option('--delete', 'delete', is_flag=True, help='Actually delete the legacy channels.')
@click.pass_context
def clear_old_channels(ctx, delete):
    """List (and optionally delete) channels with a legacy handle format."""
    with store_session(ctx) as store:
        prefix = current_app.config.get('LEGACY_HANDLE_PREFIX', 'UC')

        click.echo('Checking for old channels with incompatible format...')
        legacy = find_legacy_channels(store, prefix)
        click.echo(f'\nFound {len(legacy)} old channels with incompatible format:')
        for channel, video_count in legacy:
            click.echo(f'  - {channel.name} (handle: {channel.handle}, videos: {video_count})')

        if not legacy:
            click.echo('\n✅ All channels are in the correct format!')
            return

        if not delete:
            click.echo('\n⚠️  These channels need to be re-imported with the new format.')
            click.echo('Run again with --delete to remove them.')
            return

        deleted = delete_legacy_channels(store, prefix)
        click.echo(f'\n✅ Deleted {deleted} old channels')

@cli.command()
@click.option('--limit', type=click.IntRange(min=1), default=50, help='Number of recent videos to inspect.')
@click.pass_context
def check_videos(ctx, limit):
    """Show channel distribution among the most recent videos."""
    with store_session(ctx) as store:
        click.echo(f'\n📊 Channel distribution in the {limit} most recent videos:')
        for name, count in channel_distribution(store, limit).items():
            click.echo(f'   {name}: {count}')

        click.echo('\n📅 Latest video per channel:')
        for name, published, title in latest_video_per_channel(store):
            click.echo(f'   {name}: {published} - {title}...')

if __name__ == '__main__':
    cli()
