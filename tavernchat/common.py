"""Value types, events and errors shared across the tavern chat server."""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union


def _format_local(moment: datetime) -> str:
    """Render a timestamp in local time as ``YYYY-MM-DD HH:MM:SS[.ffffff] +HH:MM``."""
    local = moment.astimezone()
    text = local.strftime("%Y-%m-%d %H:%M:%S")
    if local.microsecond:
        text += f".{local.microsecond:06d}"
    offset = local.utcoffset()
    total = int(offset.total_seconds()) if offset is not None else 0
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{text} {sign}{hours:02d}:{minutes:02d}"


def _now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True, order=True)
class UserId:
    """Identifier of a connected user."""

    value: int

    def __str__(self) -> str:
        return f"{self.value}<User>"


@dataclass(frozen=True, order=True)
class NpcId:
    """Identifier of a non-player character."""

    value: int

    def __str__(self) -> str:
        return f"{self.value}<Npc>"


class TargetKind(enum.Enum):
    """Who a message is addressed to."""

    GLOBAL = "global"
    USER = "user"
    NPC = "npc"


@dataclass(frozen=True)
class ChatTarget:
    """The whole world, a single user or a single NPC."""

    kind: TargetKind = TargetKind.GLOBAL
    id: Optional[Union[UserId, NpcId]] = None

    @classmethod
    def user(cls, id: Union[int, UserId]) -> "ChatTarget":
        return cls(TargetKind.USER, id if isinstance(id, UserId) else UserId(id))

    @classmethod
    def npc(cls, id: Union[int, NpcId]) -> "ChatTarget":
        return cls(TargetKind.NPC, id if isinstance(id, NpcId) else NpcId(id))

    @classmethod
    def world(cls) -> "ChatTarget":
        return cls(TargetKind.GLOBAL, None)

    def __str__(self) -> str:
        if self.kind is TargetKind.GLOBAL:
            return "The World"
        return str(self.id)


class MessageTone(enum.Enum):
    """The emotion paired with a message."""

    SAID = "said"
    YELLED = "yelled"
    LAUGHED = "laughed"
    WHISPERED = "whispered"

    def __str__(self) -> str:
        return self.value


@dataclass
class ClientContext:
    """Cached chat state of one client."""

    current_target: ChatTarget = field(default_factory=ChatTarget.world)
    tone: MessageTone = MessageTone.SAID


@dataclass
class Message:
    """A chat message; the timestamp does not take part in equality."""

    sender: Optional[ChatTarget]
    to: ChatTarget
    content: str
    timestamp: datetime = field(default_factory=_now, compare=False)
    tone: MessageTone = MessageTone.SAID

    @classmethod
    def create(
        cls,
        sender: Optional[ChatTarget],
        to: ChatTarget,
        content: str,
        tone: Optional[MessageTone] = None,
    ) -> "Message":
        return cls(
            sender=sender,
            to=to,
            content=content,
            timestamp=_now(),
            tone=tone if tone is not None else MessageTone.SAID,
        )

    def to_output(self, is_private: bool) -> str:
        sender = self.sender if self.sender is not None else ChatTarget.world()
        marker = "*privately*" if is_private else ""
        return (
            f"{_format_local(self.timestamp)} {sender} {self.tone} {marker}: "
            f"{self.content}\n"
        )


@dataclass
class SystemNotification:
    """A message from the server to a single user."""

    to: UserId
    content: str

    def to_output(self) -> str:
        return f"{_format_local(_now())} System: {self.content}\n"


@dataclass
class NewClient:
    """A TCP client connected; events compare equal by address alone."""

    reader: Optional[asyncio.StreamReader] = field(compare=False, repr=False)
    writer: Optional[asyncio.StreamWriter] = field(compare=False, repr=False)
    addr: tuple


@dataclass
class DisconnectClient:
    id: UserId


@dataclass
class ReceiveUserMessage:
    sender: UserId
    message_raw: str


@dataclass
class BroadcastMessage:
    message: Message


@dataclass
class ChangeTarget:
    id: UserId
    to: ChatTarget


@dataclass
class NotifyClient:
    notification: SystemNotification


@dataclass
class Shutdown:
    pass


Event = Union[
    NewClient,
    DisconnectClient,
    ReceiveUserMessage,
    BroadcastMessage,
    ChangeTarget,
    NotifyClient,
    Shutdown,
]


class ServerError(Exception):
    """Base class of errors raised by the server."""


class TcpConnectionFailed(ServerError):
    """Writing to a client's connection failed."""

    def __init__(self, user_id: UserId) -> None:
        super().__init__(f"TCP connection failed for user {user_id}")
        self.user_id = user_id


class InvalidMessageTarget(ServerError):
    """A message was addressed to a target that does not exist."""

    def __init__(self, target: ChatTarget) -> None:
        super().__init__(f"Invalid target: {target!r}")
        self.target = target


@dataclass
class Client:
    """A connected client: the stream to write to and its chat state."""

    writer: asyncio.StreamWriter
    context: ClientContext = field(default_factory=ClientContext)