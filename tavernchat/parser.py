"""Turns a raw line from a user into server events."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional

from .common import (
    BroadcastMessage,
    ChangeTarget,
    ChatTarget,
    ClientContext,
    Event,
    Message,
    MessageTone,
    Shutdown,
    TargetKind,
    UserId,
)

log = logging.getLogger(__name__)

_U32 = re.compile(r"\+?[0-9]+", re.ASCII)

_SAY_COMMANDS = {
    "/say": MessageTone.SAID,
    "/s": MessageTone.SAID,
    "/yell": MessageTone.YELLED,
    "/laugh": MessageTone.LAUGHED,
    "/whisper": MessageTone.WHISPERED,
    "/w": MessageTone.WHISPERED,
}


def _parse_u32(text: str) -> Optional[int]:
    if not _U32.fullmatch(text):
        return None
    value = int(text)
    return value if value < 2**32 else None


async def _say_something(
    sender: UserId,
    msg: str,
    ctx: ClientContext,
    event_queue: "asyncio.Queue[Event]",
    new_tone: Optional[MessageTone],
) -> Optional[str]:
    if new_tone is not None:
        ctx.tone = new_tone
    tone = ctx.tone

    if msg:
        message = Message.create(ChatTarget.user(sender), ctx.current_target, msg, tone)
        await event_queue.put(BroadcastMessage(message))

    if ctx.current_target.kind is TargetKind.GLOBAL:
        return None
    return f"To {ctx.current_target.id}: {msg}"


async def parse_incoming_message(
    sender: UserId,
    message_raw: str,
    event_queue: "asyncio.Queue[Event]",
    client_ctx: ClientContext,
) -> None:
    """Interpret one line from ``sender`` and queue the resulting events."""
    log.debug("%s: %r", sender, message_raw)
    if not message_raw:
        return

    reply: Optional[str] = None

    if message_raw.startswith("/"):
        command, _, msg = message_raw.partition(" ")
        command = command.lower()
        target = client_ctx.current_target

        if command in _SAY_COMMANDS:
            reply = await _say_something(
                sender, msg, client_ctx, event_queue, _SAY_COMMANDS[command]
            )
        elif command in ("/to_user", "/to_npc"):
            target_id = _parse_u32(msg)
            if target_id is None:
                reply = f"Invalid target. please use {command} <id>"
            else:
                new_target = (
                    ChatTarget.user(target_id)
                    if command == "/to_user"
                    else ChatTarget.npc(target_id)
                )
                await event_queue.put(ChangeTarget(sender, new_target))
        elif command in ("/to_world", "/to_everyone", "/global"):
            await event_queue.put(ChangeTarget(sender, ChatTarget.world()))
        elif command == "/wave":
            await _say_something(
                sender, f"You waved at {target}. Wassup?", client_ctx, event_queue, None
            )
        elif command == "/poke":
            await _say_something(
                sender, f"You poked {target}. Hey!", client_ctx, event_queue, None
            )
        elif command == "/lol":
            await _say_something(
                sender,
                "You laughed out loud. A ha HA!",
                client_ctx,
                event_queue,
                MessageTone.LAUGHED,
            )
        elif command == "/cry":
            await _say_something(
                sender,
                f"You cried on {target}'s shoulder. There there.",
                client_ctx,
                event_queue,
                None,
            )
        elif command == "/dance":
            await _say_something(
                sender,
                "You danced on top of a table! What a jolly time!",
                client_ctx,
                event_queue,
                None,
            )
        elif command == "/shutdown":
            await event_queue.put(Shutdown())
        else:
            reply = "Unknown command."
    else:
        reply = await _say_something(sender, message_raw, client_ctx, event_queue, None)

    if reply is not None:
        await event_queue.put(
            BroadcastMessage(
                Message.create(
                    None,
                    ChatTarget.user(sender),
                    f"{reply}\n{client_ctx.tone} >",
                )
            )
        )