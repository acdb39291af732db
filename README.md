# tavernchat

A small chat server set in a fantasy tavern. Patrons connect over plain TCP,
get a numeric id (counting up from 0), and talk to the whole room or to one
another, with a tone (said, yelled, laughed, whispered) on every line.

## Running the server

```
pip install .
tavernchat
```

By default the server listens on `127.0.0.1:8080`; `--host` and `--port`
change that:

```
tavernchat --host 0.0.0.0 --port 9000
```

Any line-based TCP client will do:

```
nc 127.0.0.1 8080
```

Each newcomer is greeted with a `System: Welcome to Tavern chat!` line. Every
line sent to a client starts with a local timestamp; chat lines then name the
speaker (for example `3<User>`, or `The World` for server messages) and the
tone, and lines meant for one user only are marked `*privately*`.

## Talking

A line that does not start with `/` is sent to your current target in your
current tone. Commands are not case-sensitive.

| Command | Effect |
| --- | --- |
| `/say <text>`, `/s <text>` | say something; tone becomes *said* |
| `/yell <text>` | tone becomes *yelled* |
| `/laugh <text>` | tone becomes *laughed* |
| `/whisper <text>`, `/w <text>` | tone becomes *whispered* |
| `/to_user <id>` | talk privately to a connected user |
| `/to_npc <id>` | talk to an NPC |
| `/to_world`, `/to_everyone`, `/global` | talk to the whole tavern again |
| `/wave`, `/poke`, `/lol`, `/cry`, `/dance` | emotes; `/lol` also sets the tone to *laughed* |
| `/shutdown` | close the tavern for everyone |

A tone command without text only changes your tone. When you talk to a single
user or NPC the server echoes your line back to you as `To <id>: <text>`,
followed by a prompt showing your tone. A target change to a user who is not
connected is ignored; an id that is not a number, or an unknown command, gets
a short reply. If a private message cannot be delivered, the sender gets a
`Failed to send message: ...` notice. The last 100 messages are kept in the
server's in-memory log (`TavernServer.message_log`).

## Using it from Python

```python
import asyncio
from tavernchat.server import TavernServer

asyncio.run(TavernServer(host="127.0.0.1", port=9000).run())
```

`TavernServer.run()` returns after a `/shutdown` (or a `Shutdown` event put on
`TavernServer.events`). Once listening it sets `TavernServer.ready` and stores
the bound `(host, port)` in `TavernServer.address`, so `port=0` works for an
ephemeral port.

The building blocks live in `tavernchat.common` (`ChatTarget`, `Message`,
`MessageTone`, `ClientContext`, the event classes and the `ServerError`
exceptions), `tavernchat.npcs` (`Npc`, `NpcState`) and
`tavernchat.parser.parse_incoming_message`, which turns one line of user input
into events on an `asyncio.Queue`.

## What it does not do

- No NPCs are ever created, so `/to_npc` always names a target that does not
  exist and leaves your target unchanged. NPCs have no behaviour.
- The message log lives in memory only; nothing is stored across restarts and
  history is not replayed to newcomers.
- There are no accounts, names or authentication; anyone who connects may use
  `/shutdown`.

## Tests

```
pip install .[test]
pytest
```