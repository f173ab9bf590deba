"""
Shared fixtures: a manually advanced scheduler, a transport that records
every outbound message, and a table helper that drives a manager the way
websocket clients would.
"""

import itertools
import random

import pytest

from party_engine.constants import GameKind
from party_engine.manager import GameManager
from party_engine.rules import RuleConfig
from party_engine.shuffle import CardTexts


class FakeTimer:
    _seq = itertools.count()

    def __init__(self, due, interval, callback, repeat):
        self.due = due
        self.interval = interval
        self.callback = callback
        self.repeat = repeat
        self.cancelled = False
        self.seq = next(self._seq)

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Runs timer callbacks only when the test advances the clock."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def call_later(self, delay, callback):
        timer = FakeTimer(self.now + delay, delay, callback, repeat=False)
        self.timers.append(timer)
        return timer

    def call_every(self, interval, callback):
        timer = FakeTimer(self.now + interval, interval, callback, repeat=True)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [t for t in self.timers if not t.cancelled and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self.now = timer.due
            if timer.repeat:
                timer.due += timer.interval
            else:
                timer.cancelled = True
            timer.callback()
        self.now = target
        self.timers = self.pending


class RecordingTransport:
    def __init__(self):
        self.sent = []

    def send(self, connection_id, message):
        self.sent.append((connection_id, message))

    def messages(self, connection_id=None, event=None):
        return [
            m for cid, m in self.sent
            if (connection_id is None or cid == connection_id) and (event is None or m["type"] == event)
        ]

    def last(self, connection_id, event):
        found = self.messages(connection_id, event)
        return found[-1] if found else None

    def clear(self):
        self.sent = []


class Table:
    """Drives a GameManager through named clients seated in one room."""

    def __init__(self, manager, transport, scheduler, code="ROOM1"):
        self.manager = manager
        self.transport = transport
        self.scheduler = scheduler
        self.code = code

    @staticmethod
    def cid(name):
        return f"conn-{name.lower()}"

    @property
    def room(self):
        return self.manager.registry.get(self.code)

    def player(self, name):
        return self.room.find_by_name(name)

    def join(self, name, kind=GameKind.TRICK_CARD.value, connection_id=None):
        frame = {"type": "join-room", "code": self.code, "name": name}
        if kind is not None:
            frame["kind"] = kind
        return self.manager.handle_event(connection_id or self.cid(name), frame)

    def send(self, name, event, **payload):
        return self.manager.handle_event(self.cid(name), {"type": event, **payload})

    def drop(self, name):
        self.manager.disconnect(self.cid(name))

    def seat(self, names, kind=GameKind.TRICK_CARD.value):
        for name in names:
            assert self.join(name, kind)["success"]
        return self.room

    def start(self, names, kind=GameKind.TRICK_CARD.value):
        self.seat(names, kind)
        for name in names:
            self.send(name, "ready-toggle")
        self.scheduler.advance(self.manager.rules.countdown_seconds)
        assert self.room.started
        return self.room

    def view(self, name):
        engine = self.manager.engine_for(self.room)
        return self.transport.last(self.cid(name), engine.view_event.value)


@pytest.fixture
def rules():
    return RuleConfig(blank_card_chance=0)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def card_texts():
    return CardTexts(
        prompts=[f"Prompt {i} ___" for i in range(50)],
        fill_ins=[f"Card {i}" for i in range(300)],
    )


@pytest.fixture
def manager(transport, scheduler, rules, card_texts):
    return GameManager(transport, rules=rules, scheduler=scheduler,
                       rng=random.Random(1234), card_texts=card_texts)


@pytest.fixture
def table(manager, transport, scheduler):
    return Table(manager, transport, scheduler)
