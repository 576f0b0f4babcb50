"""
Video maintenance jobs.

Every job takes a ``VideoStore`` (see ``videohub.store``) and works on the
whole dataset or a filtered slice of it. Deletions always follow
``PURGE_ORDER``: rows that hold a foreign key into ``videos`` go first, the
videos themselves last, and the channel aggregates are repaired afterwards.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from videohub.models import (Channel, Video, PlaylistItem, WatchLater, WatchHistory,
                             Like, Dislike, Comment, VideoTag)

logger = logging.getLogger(__name__)

# Children of Video first, Video last.
PURGE_ORDER = (
    PlaylistItem,
    WatchLater,
    WatchHistory,
    Like,
    Dislike,
    Comment,
    VideoTag,
    Video,
)

VIDEO_DEPENDENTS = PURGE_ORDER[:-1]

CHANNEL_AGGREGATE_RESET = {'video_count': 0, 'total_views': 0}


class MaintenanceError(Exception):
    """Base class for maintenance job failures that are not store errors"""


class ChannelNotFound(MaintenanceError):
    def __init__(self, handle):
        super().__init__(f"Channel @{handle} not found")
        self.handle = handle


@dataclass
class PurgeResult:
    deleted: dict = field(default_factory=dict)  # table name -> rows deleted
    channels_reset: int = 0

    @property
    def videos_deleted(self):
        return self.deleted.get(Video.__tablename__, 0)


@dataclass
class ChannelPurgeResult:
    name: str
    handle: str
    videos: list
    deleted: dict


@dataclass
class ShortVideoPurgeResult:
    threshold: int
    videos: list
    deleted: dict = field(default_factory=dict)
    channels_updated: int = 0


@dataclass
class CountReport:
    videos: int
    channels: int
    per_channel: list  # (channel name, video count), channels without videos omitted


def _run_step(store, description, operation, *args, commit=True):
    """Run one store operation, committing it unless an outer transaction owns the session"""
    try:
        affected = operation(*args)
        if commit:
            store.commit()
    except SQLAlchemyError as e:
        logger.error(f"❌ Step failed ({description}): {e}")
        if commit:
            store.rollback()
        raise
    logger.info(f"🗑️ {description}: {affected} rows")
    return affected


def _purge(store, commit_each_step):
    result = PurgeResult()
    for model in PURGE_ORDER:
        table = model.__tablename__
        result.deleted[table] = _run_step(
            store, f"delete {table}", store.delete_many, model, commit=commit_each_step
        )

    result.channels_reset = _run_step(
        store, "reset channel aggregates", store.update_many, Channel, CHANNEL_AGGREGATE_RESET,
        commit=commit_each_step
    )
    return result


def purge_all_videos(store, atomic=False):
    """
    Delete every video and every row that references one, then zero the
    per-channel ``video_count`` and ``total_views``.

    Steps run strictly in ``PURGE_ORDER``. By default each step is committed
    on its own, so a failure leaves earlier steps applied and stops the
    remaining ones; re-running the job finishes the work. With ``atomic`` the
    whole sequence is one transaction and a failure rolls all of it back.
    Store errors propagate unchanged.
    """
    logger.info(f"🗑️ Deleting all videos ({'single transaction' if atomic else 'step by step'})...")

    if atomic:
        with store.transaction():
            result = _purge(store, commit_each_step=False)
    else:
        result = _purge(store, commit_each_step=True)

    logger.info(f"✅ All videos deleted ({result.videos_deleted} videos, {result.channels_reset} channels reset)")
    return result


def _delete_videos(store, video_ids):
    """Delete the given videos and their dependents, without committing"""
    deleted = {}
    for model in VIDEO_DEPENDENTS:
        deleted[model.__tablename__] = store.delete_many(model, model.video_id.in_(video_ids))
    deleted[Video.__tablename__] = store.delete_many(Video, Video.id.in_(video_ids))
    return deleted


def normalize_handle(handle):
    return handle[1:] if handle.startswith('@') else handle


def delete_channel_videos(store, handle):
    """Delete all videos of one channel and zero that channel's aggregates"""
    clean_handle = normalize_handle(handle)
    channels = store.find_many(Channel, criteria=(Channel.handle == clean_handle,), limit=1)
    if not channels:
        raise ChannelNotFound(clean_handle)

    channel = channels[0]
    channel_id, channel_name = channel.id, channel.name
    videos = store.find_many(
        Video, Video.id, Video.title, Video.duration,
        criteria=(Video.channel_id == channel_id,), order_by=Video.id
    )
    logger.info(f"📺 Channel {channel_name} (@{clean_handle}): {len(videos)} videos to delete")

    deleted = {}
    if videos:
        with store.transaction():
            deleted = _delete_videos(store, [video.id for video in videos])
            store.update_many(Channel, CHANNEL_AGGREGATE_RESET, Channel.id == channel_id)
        logger.info(f"✅ Deleted {deleted[Video.__tablename__]} videos from @{clean_handle}")

    return ChannelPurgeResult(name=channel_name, handle=clean_handle, videos=videos, deleted=deleted)


def delete_short_videos(store, threshold=300):
    """
    Delete videos shorter than ``threshold`` seconds.

    Each affected channel has ``video_count`` decremented by the number of its
    deleted videos and ``total_views`` by their views, in the same transaction
    as the deletes.
    """
    videos = store.find_many(
        Video, Video.id, Video.title, Video.duration, Video.views, Video.channel_id,
        criteria=(Video.duration < threshold,), order_by=Video.id
    )
    logger.info(f"🔍 Found {len(videos)} videos shorter than {threshold} seconds")
    result = ShortVideoPurgeResult(threshold=threshold, videos=videos)
    if not videos:
        return result

    # channel id -> [videos, views]
    channel_updates = {}
    for video in videos:
        totals = channel_updates.setdefault(video.channel_id, [0, 0])
        totals[0] += 1
        totals[1] += video.views or 0

    with store.transaction():
        result.deleted = _delete_videos(store, [video.id for video in videos])
        for channel_id, (video_count, views) in channel_updates.items():
            store.update_many(
                Channel,
                {
                    'video_count': Channel.video_count - video_count,
                    'total_views': Channel.total_views - views,
                },
                Channel.id == channel_id
            )
    result.channels_updated = len(channel_updates)

    logger.info(f"✅ Deleted {result.deleted[Video.__tablename__]} short videos, updated {result.channels_updated} channel(s)")
    return result


def find_legacy_channels(store, prefix='UC'):
    """Channels whose handle is not a YouTube channel id, with their video counts"""
    channels = store.find_many(
        Channel, Channel.id, Channel.name, Channel.handle,
        criteria=(~Channel.handle.startswith(prefix),), order_by=Channel.name
    )
    return [
        (channel, store.count(Video, Video.channel_id == channel.id))
        for channel in channels
    ]


def delete_legacy_channels(store, prefix='UC'):
    """Delete legacy-format channels together with their videos and dependents"""
    channel_ids = [channel.id for channel, _ in find_legacy_channels(store, prefix)]
    if not channel_ids:
        return 0

    with store.transaction():
        video_ids = [row.id for row in store.find_many(
            Video, Video.id, criteria=(Video.channel_id.in_(channel_ids),)
        )]
        if video_ids:
            _delete_videos(store, video_ids)
        deleted = store.delete_many(Channel, Channel.id.in_(channel_ids))

    logger.info(f"✅ Deleted {deleted} legacy channels")
    return deleted


def build_count_report(store):
    videos = store.count(Video)
    channels = store.count(Channel)

    per_channel = []
    for channel in store.find_many(Channel, Channel.id, Channel.name, order_by=Channel.name):
        video_count = store.count(Video, Video.channel_id == channel.id)
        if video_count > 0:
            per_channel.append((channel.name, video_count))

    return CountReport(videos=videos, channels=channels, per_channel=per_channel)


def format_count_report(report):
    lines = [
        '',
        '📊 Database Stats:',
        f'   Videos: {report.videos}',
        f'   Channels: {report.channels}',
        '',
        '📺 Videos per channel:',
    ]
    for name, video_count in report.per_channel:
        lines.append(f'   {name}: {video_count} videos')
    return '\n'.join(lines)


def channel_distribution(store, limit=50):
    """Count, per channel name, the ``limit`` most recently published public videos"""
    videos = store.find_many(
        Video, Video.channel_id,
        criteria=(Video.visibility == 'PUBLIC', Video.published_at.isnot(None)),
        order_by=Video.published_at.desc(),
        limit=limit
    )
    if not videos:
        return {}

    names = dict(store.find_many(
        Channel, Channel.id, Channel.name,
        criteria=(Channel.id.in_(sorted({video.channel_id for video in videos})),)
    ))
    counts = {}
    for video in videos:
        name = names[video.channel_id]
        counts[name] = counts.get(name, 0) + 1
    return counts


def latest_video_per_channel(store):
    """(channel name, publish date, title) of the newest video of each non-empty channel"""
    latest = []
    channels = store.find_many(
        Channel, Channel.id, Channel.name,
        criteria=(Channel.video_count > 0,), order_by=Channel.name
    )
    for channel in channels:
        videos = store.find_many(
            Video, Video.title, Video.published_at,
            criteria=(Video.channel_id == channel.id, Video.published_at.isnot(None)),
            order_by=Video.published_at.desc(),
            limit=1
        )
        if videos:
            video = videos[0]
            latest.append((channel.name, video.published_at.date().isoformat(), video.title[:40]))
    return latest


def format_duration(seconds):
    minutes, seconds = divmod(seconds or 0, 60)
    return f"{minutes}:{seconds:02d}"
