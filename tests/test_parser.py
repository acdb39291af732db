import asyncio

import pytest

from tavernchat.common import (
    BroadcastMessage,
    ChangeTarget,
    ChatTarget,
    ClientContext,
    Message,
    MessageTone,
    Shutdown,
    UserId,
)
from tavernchat.parser import parse_incoming_message

SENDER = UserId(3)


async def _run(line, ctx):
    queue = asyncio.Queue()
    await parse_incoming_message(SENDER, line, queue, ctx)
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


def _reply(text, tone=MessageTone.SAID):
    return BroadcastMessage(
        Message.create(None, ChatTarget.user(SENDER), f"{text}\n{tone} >")
    )


@pytest.mark.asyncio
async def test_can_parse_say_commands_with_default_ctx():
    ctx = ClientContext()
    events = await _run("/yell hello world!", ctx)
    assert events == [
        BroadcastMessage(
            Message(
                sender=ChatTarget.user(SENDER),
                to=ChatTarget.world(),
                content="hello world!",
                tone=MessageTone.YELLED,
            )
        )
    ]
    assert ctx.tone is MessageTone.YELLED


@pytest.mark.asyncio
async def test_empty_line_produces_nothing():
    assert await _run("", ClientContext()) == []


@pytest.mark.asyncio
async def test_plain_text_uses_current_tone():
    ctx = ClientContext(tone=MessageTone.WHISPERED)
    events = await _run("psst", ctx)
    assert events == [
        BroadcastMessage(
            Message(ChatTarget.user(SENDER), ChatTarget.world(), "psst",
                    tone=MessageTone.WHISPERED)
        )
    ]


@pytest.mark.asyncio
async def test_command_is_case_insensitive():
    ctx = ClientContext()
    events = await _run("/LAUGH ha", ctx)
    assert events[0].message.tone is MessageTone.LAUGHED


@pytest.mark.asyncio
async def test_say_to_user_replies_to_sender():
    ctx = ClientContext(current_target=ChatTarget.user(5))
    events = await _run("/s hi", ctx)
    assert events == [
        BroadcastMessage(
            Message(ChatTarget.user(SENDER), ChatTarget.user(5), "hi", tone=MessageTone.SAID)
        ),
        _reply("To 5<User>: hi"),
    ]


@pytest.mark.asyncio
async def test_tone_change_without_content_only_replies_when_targeted():
    ctx = ClientContext(current_target=ChatTarget.npc(1))
    events = await _run("/w", ctx)
    assert ctx.tone is MessageTone.WHISPERED
    assert events == [_reply("To 1<Npc>: ", MessageTone.WHISPERED)]


@pytest.mark.asyncio
async def test_to_user_changes_target():
    assert await _run("/to_user 7", ClientContext()) == [
        ChangeTarget(SENDER, ChatTarget.user(7))
    ]


@pytest.mark.asyncio
async def test_to_npc_changes_target():
    assert await _run("/to_npc 2", ClientContext()) == [
        ChangeTarget(SENDER, ChatTarget.npc(2))
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("arg", ["abc", "", "-1", " 4", "4294967296"])
async def test_to_user_invalid_target(arg):
    events = await _run(f"/to_user {arg}", ClientContext())
    assert events == [_reply("Invalid target. please use /to_user <id>")]


@pytest.mark.asyncio
async def test_to_npc_invalid_target():
    events = await _run("/to_npc x", ClientContext())
    assert events == [_reply("Invalid target. please use /to_npc <id>")]


@pytest.mark.asyncio
@pytest.mark.parametrize("cmd", ["/to_world", "/to_everyone", "/global"])
async def test_back_to_world(cmd):
    assert await _run(cmd, ClientContext()) == [ChangeTarget(SENDER, ChatTarget.world())]


@pytest.mark.asyncio
async def test_wave_names_current_target():
    events = await _run("/wave", ClientContext())
    assert [e.message.content for e in events] == ["You waved at The World. Wassup?"]


@pytest.mark.asyncio
async def test_emote_to_user_sends_no_reply():
    ctx = ClientContext(current_target=ChatTarget.user(4))
    events = await _run("/poke", ctx)
    assert len(events) == 1
    assert events[0].message.content == "You poked 4<User>. Hey!"
    assert events[0].message.to == ChatTarget.user(4)


@pytest.mark.asyncio
async def test_lol_sets_laughing_tone():
    ctx = ClientContext()
    events = await _run("/lol", ctx)
    assert ctx.tone is MessageTone.LAUGHED
    assert events[0].message.content == "You laughed out loud. A ha HA!"


@pytest.mark.asyncio
async def test_cry_and_dance():
    cry = await _run("/cry", ClientContext())
    dance = await _run("/dance", ClientContext())
    assert cry[0].message.content == "You cried on The World's shoulder. There there."
    assert dance[0].message.content == "You danced on top of a table! What a jolly time!"


@pytest.mark.asyncio
async def test_shutdown_command():
    assert await _run("/shutdown", ClientContext()) == [Shutdown()]


@pytest.mark.asyncio
async def test_unknown_command():
    assert await _run("/fly away", ClientContext()) == [_reply("Unknown command.")]