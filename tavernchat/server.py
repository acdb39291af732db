"""The tavern chat server: accepts TCP clients and routes their messages."""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from .common import (
    BroadcastMessage,
    ChangeTarget,
    ChatTarget,
    Client,
    DisconnectClient,
    Event,
    InvalidMessageTarget,
    Message,
    NewClient,
    NotifyClient,
    NpcId,
    ReceiveUserMessage,
    ServerError,
    Shutdown,
    SystemNotification,
    TargetKind,
    TcpConnectionFailed,
    UserId,
)
from .npcs import Npc
from .parser import parse_incoming_message

log = logging.getLogger(__name__)

MESSAGE_HISTORY_LEN = 100
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080


async def _to_client(writer: asyncio.StreamWriter, user_id: UserId, text: str) -> None:
    """Write ``text`` to a client, raising TcpConnectionFailed on any I/O failure."""
    try:
        writer.write(text.encode("utf-8"))
        await writer.drain()
    except (OSError, RuntimeError) as exc:
        raise TcpConnectionFailed(user_id) from exc


def _close_writer(writer: asyncio.StreamWriter) -> None:
    try:
        writer.close()
    except (OSError, RuntimeError):
        pass


class TavernServer:
    """Central state of the tavern: clients, NPCs and the message log."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
        self.host = host
        self.port = port
        self.message_log: Deque[Message] = deque(maxlen=MESSAGE_HISTORY_LEN)
        self.npcs: Dict[NpcId, Npc] = {}
        self.clients: Dict[UserId, Client] = {}
        self.events: "asyncio.Queue[Event]" = asyncio.Queue()
        self.ready = asyncio.Event()
        self.address: Optional[Tuple[str, int]] = None
        self._next_entity_id = 0
        self._watchers: List[asyncio.Task] = []

    async def run(self) -> None:
        """Listen for connections and process events until a shutdown event."""
        log.info("Starting Tavern Chat server! Welcome!")

        async def on_connect(
            reader: asyncio.StreamReader, writer: asyncio.StreamWriter
        ) -> None:
            addr = writer.get_extra_info("peername")
            log.info("New client connected: %s", addr)
            await self.events.put(NewClient(reader, writer, addr))

        listener = await asyncio.start_server(on_connect, self.host, self.port)
        sockname = listener.sockets[0].getsockname()
        self.address = (sockname[0], sockname[1])
        log.info("Tavern server awaiting connections on %s:%s", *self.address)
        self.ready.set()

        try:
            while True:
                event = await self.events.get()
                log.debug("New event: %r", event)
                if await self._handle(event):
                    break
        finally:
            listener.close()
            for task in self._watchers:
                task.cancel()
            await asyncio.gather(*self._watchers, return_exceptions=True)
            self._watchers.clear()
            self.shutdown()
            try:
                await asyncio.wait_for(listener.wait_closed(), 1)
            except asyncio.TimeoutError:
                pass
            self.ready.clear()

        log.info("Tavern Chat server shutdown! So long!")

    async def _handle(self, event: Event) -> bool:
        """Process one event; return True when the server should stop."""
        if isinstance(event, NewClient):
            if event.writer is None or event.reader is None:
                return False
            user_id = UserId(self._next_entity_id)
            self._next_entity_id += 1
            self.clients[user_id] = Client(event.writer)
            self._watchers.append(
                asyncio.create_task(self._watch_client(user_id, event.reader))
            )
            await self.events.put(
                NotifyClient(SystemNotification(user_id, "Welcome to Tavern chat!"))
            )
        elif isinstance(event, DisconnectClient):
            self.remove_client(event.id)
        elif isinstance(event, ReceiveUserMessage):
            client = self.clients.get(event.sender)
            if client is not None:
                await parse_incoming_message(
                    event.sender, event.message_raw, self.events, client.context
                )
        elif isinstance(event, BroadcastMessage):
            await self.broadcast_message(event.message)
        elif isinstance(event, ChangeTarget):
            if self._target_exists(event.to):
                client = self.clients.get(event.id)
                if client is not None:
                    client.context.current_target = event.to
        elif isinstance(event, NotifyClient):
            notification = event.notification
            client = self.clients.get(notification.to)
            if client is not None:
                try:
                    await _to_client(
                        client.writer, notification.to, notification.to_output()
                    )
                except TcpConnectionFailed:
                    await self.events.put(DisconnectClient(notification.to))
        elif isinstance(event, Shutdown):
            await self.broadcast_message(
                Message.create(None, ChatTarget.world(), "Server Shutdown! So long!")
            )
            self.shutdown()
            return True
        return False

    def _target_exists(self, target: ChatTarget) -> bool:
        if target.kind is TargetKind.GLOBAL:
            return True
        if target.kind is TargetKind.USER:
            return target.id in self.clients
        return target.id in self.npcs

    async def _watch_client(self, user_id: UserId, reader: asyncio.StreamReader) -> None:
        """Forward each line the client sends as an event until it goes away."""
        while True:
            try:
                raw = await reader.readline()
                if not raw:
                    raise EOFError
                line = raw.decode("utf-8")
            except (OSError, EOFError, ValueError, asyncio.LimitOverrunError):
                log.info("Error in connecting to user: %s", user_id)
                await self.events.put(DisconnectClient(user_id))
                return
            if line.endswith("\n"):
                line = line[:-1]
                if line.endswith("\r"):
                    line = line[:-1]
            await self.events.put(ReceiveUserMessage(user_id, line))

    def shutdown(self) -> None:
        """Close every client connection."""
        for client in self.clients.values():
            _close_writer(client.writer)
        self.clients.clear()

    def remove_client(self, id: UserId) -> None:
        """Close and forget one client's connection."""
        client = self.clients.pop(id, None)
        if client is not None:
            _close_writer(client.writer)

    async def broadcast_message(self, message: Message) -> None:
        """Log a message and deliver it to its target."""
        self.message_log.append(message)
        failed: List[UserId] = []
        error: Optional[ServerError] = None

        if message.to.kind is TargetKind.GLOBAL:
            log.debug("Global: %r", message.content)
            text = message.to_output(False)
            for user_id, client in list(self.clients.items()):
                try:
                    await _to_client(client.writer, user_id, text)
                except TcpConnectionFailed:
                    failed.append(user_id)
        elif message.to.kind is TargetKind.USER:
            user_id = message.to.id
            client = self.clients.get(user_id)
            if client is None:
                error = InvalidMessageTarget(message.to)
            else:
                try:
                    await _to_client(client.writer, user_id, message.to_output(True))
                except TcpConnectionFailed as exc:
                    failed.append(user_id)
                    error = exc
        else:
            error = InvalidMessageTarget(message.to)

        if error is not None:
            sender = message.sender
            if sender is not None and sender.kind is TargetKind.USER:
                await self.events.put(
                    NotifyClient(
                        SystemNotification(sender.id, f"Failed to send message: {error}")
                    )
                )

        for user_id in failed:
            await self.events.put(DisconnectClient(user_id))


def main(argv: Optional[List[str]] = None) -> int:
    """Run the tavern chat server until it is shut down."""
    parser = argparse.ArgumentParser(description="Run the tavern chat server.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(TavernServer(args.host, args.port).run())
    except KeyboardInterrupt:
        pass
    return 0