"""
notification_feeds.py
Notification change feeds over Supabase realtime.

Feeds are scoped: the channel is opened on enter and always removed on exit.

    async with member_notification_feed(client, member_id, on_new) as channel:
        ...
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable

from supabase import AsyncClient, acreate_client

from config import AppConfig
from models import Notification

logger = logging.getLogger(__name__)

Handler = Callable[[Notification], None]


async def get_async_client(cfg: AppConfig) -> AsyncClient:
    return await acreate_client(cfg.supabase.url, cfg.supabase.key)


def _inserted_row(payload: dict) -> dict:
    # realtime v2 nests the row under data.record; older servers send it as "new"
    data = payload.get("data") or {}
    return data.get("record") or payload.get("new") or payload.get("record") or {}


def _dispatch(handler: Handler):
    def callback(payload: dict) -> None:
        row = _inserted_row(payload)
        if row:
            handler(Notification.from_row(row))
    return callback


@asynccontextmanager
async def _feed(client: AsyncClient, name: str, handler: Handler, row_filter: str | None = None):
    channel = client.channel(name)
    channel.on_postgres_changes(
        "INSERT",
        schema="public",
        table="notifications",
        filter=row_filter,
        callback=_dispatch(handler),
    )
    try:
        await channel.subscribe()
        logger.info(f"Subscribed to {name}")
        yield channel
    finally:
        await client.remove_channel(channel)
        logger.info(f"Unsubscribed from {name}")


def member_notification_feed(client: AsyncClient, member_id: str, handler: Handler):
    """New notifications for one member."""
    row_filter = f"member_id=eq.{member_id}"
    return _feed(client, f"notifications:{row_filter}", handler, row_filter)


def all_notification_feed(client: AsyncClient, handler: Handler):
    """Every new notification (admin view)."""
    return _feed(client, "notifications:all", handler)


async def collect_new_notifications(cfg: AppConfig, seconds: float, member_id: str | None = None) -> list[Notification]:
    """
    Listen for `seconds` and return the notifications inserted meanwhile.
    """
    received: list[Notification] = []
    client = await get_async_client(cfg)
    if member_id:
        feed = member_notification_feed(client, member_id, received.append)
    else:
        feed = all_notification_feed(client, received.append)
    async with feed:
        await asyncio.sleep(seconds)
    return received
