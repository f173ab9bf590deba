"""
Tests for joining, ready-up and the start countdown.
"""

from party_engine.errors import GAME_IN_PROGRESS, NAME_REQUIRED, NAME_TAKEN, ROOM_NOT_FOUND


def test_join_acknowledges_new_seat(table):
    ack = table.join("Alice")

    assert ack == {
        "for": "join-room",
        "success": True,
        "code": "ROOM1",
        "kind": "trick-card",
        "playerId": table.player("Alice").id,
        "reconnected": False,
    }
    view = table.transport.last(table.cid("Alice"), "lobby-view")
    assert view["totalPlayers"] == 1
    assert view["minPlayers"] == 3
    assert view["players"][0]["name"] == "Alice"


def test_first_joiner_is_host(table):
    table.seat(["Alice", "Bob"])

    assert table.player("Alice").is_host
    assert not table.player("Bob").is_host
    assert table.player("Alice").seat < table.player("Bob").seat


def test_name_taken_is_case_insensitive(table):
    table.join("Alice")
    ack = table.join("alice", connection_id="conn-other")

    assert not ack["success"]
    assert ack["code"] == NAME_TAKEN
    assert table.transport.last("conn-other", "action-error")["code"] == NAME_TAKEN
    assert table.transport.messages("conn-other", "lobby-view") == []
    assert len(table.room.players) == 1


def test_join_unknown_room_without_kind(table, manager):
    ack = table.join("Alice", kind=None)

    assert ack["code"] == ROOM_NOT_FOUND
    assert len(manager.registry) == 0


def test_blank_name_rejected_without_leaving_an_empty_room(table, manager):
    ack = table.join("   ")

    assert ack["code"] == NAME_REQUIRED
    assert len(manager.registry) == 0


def test_name_is_trimmed_and_capped(table):
    table.join("   Bartholomew the Great  ")
    player = next(iter(table.room.players.values()))

    assert player.name == "Bartholomew the"


def test_join_started_room_rejected(table):
    table.start(["Alice", "Bob", "Carol"])
    ack = table.join("Dave")

    assert ack["code"] == GAME_IN_PROGRESS
    assert table.player("Dave") is None


def test_started_room_wins_over_name_clash(table):
    table.start(["Alice", "Bob", "Carol"])
    ack = table.join("bob", connection_id="conn-other")

    assert ack["code"] == GAME_IN_PROGRESS


def test_ready_toggle_round_trip(table):
    table.seat(["Alice", "Bob"])

    assert table.send("Alice", "ready-toggle")["ready"] is True
    assert table.transport.last(table.cid("Bob"), "lobby-view")["readyCount"] == 1

    assert table.send("Alice", "ready-toggle")["ready"] is False
    assert table.transport.last(table.cid("Bob"), "lobby-view")["readyCount"] == 0
    assert not table.player("Alice").ready


def test_countdown_needs_minimum_players(table):
    room = table.seat(["Alice", "Bob"])
    table.send("Alice", "ready-toggle")
    table.send("Bob", "ready-toggle")

    assert room.countdown_timer is None
    assert table.transport.messages(event="countdown-tick") == []


def test_shedding_room_starts_with_two(table):
    room = table.seat(["Alice", "Bob"], kind="shedding-card")
    table.send("Alice", "ready-toggle")
    table.send("Bob", "ready-toggle")

    assert room.countdown_timer is not None


def test_countdown_starts_once_when_everyone_is_ready(table, rules):
    room = table.seat(["Alice", "Bob", "Carol"])
    for name in ["Alice", "Bob", "Carol"]:
        table.send(name, "ready-toggle")

    assert room.countdown_timer is not None
    assert room.countdown_seconds == rules.countdown_seconds
    assert table.transport.messages(table.cid("Alice"), "countdown-tick") == [
        {"type": "countdown-tick", "seconds": rules.countdown_seconds}
    ]
    assert table.transport.last(table.cid("Alice"), "lobby-view")["countdownActive"] is True
    assert table.transport.last(table.cid("Alice"), "lobby-view")["phase"] == "countdown"
    assert len(table.scheduler.pending) == 1


def test_countdown_ticks_every_second(table, rules):
    room = table.seat(["Alice", "Bob", "Carol"])
    for name in ["Alice", "Bob", "Carol"]:
        table.send(name, "ready-toggle")

    table.scheduler.advance(5)

    assert room.countdown_seconds == rules.countdown_seconds - 5
    tick = table.transport.last(table.cid("Carol"), "countdown-tick")
    assert tick["seconds"] == rules.countdown_seconds - 5


def test_unready_cancels_countdown_exactly_once(table):
    room = table.seat(["Alice", "Bob", "Carol"])
    for name in ["Alice", "Bob", "Carol"]:
        table.send(name, "ready-toggle")
    table.scheduler.advance(3)

    table.send("Bob", "ready-toggle")

    assert room.countdown_timer is None
    assert room.countdown_seconds == 0
    assert len(table.transport.messages(table.cid("Alice"), "countdown-cancelled")) == 1

    table.scheduler.advance(60)
    assert not room.started
    assert table.scheduler.pending == []


def test_new_joiner_cancels_countdown(table):
    room = table.seat(["Alice", "Bob", "Carol"])
    for name in ["Alice", "Bob", "Carol"]:
        table.send(name, "ready-toggle")

    table.join("Dave")

    assert room.countdown_timer is None
    assert len(table.transport.messages(table.cid("Alice"), "countdown-cancelled")) == 1


def test_disconnect_during_countdown_restarts_if_rest_are_ready(table, rules):
    room = table.seat(["Alice", "Bob", "Carol", "Dave"])
    for name in ["Alice", "Bob", "Carol", "Dave"]:
        table.send(name, "ready-toggle")
    table.scheduler.advance(10)

    table.drop("Dave")

    assert len(table.transport.messages(table.cid("Alice"), "countdown-cancelled")) == 1
    assert room.countdown_timer is not None
    assert room.countdown_seconds == rules.countdown_seconds


def test_disconnect_during_countdown_below_minimum(table):
    room = table.seat(["Alice", "Bob", "Carol"])
    for name in ["Alice", "Bob", "Carol"]:
        table.send(name, "ready-toggle")

    table.drop("Carol")

    assert room.countdown_timer is None
    assert len(table.transport.messages(table.cid("Alice"), "countdown-cancelled")) == 1


def test_countdown_completion_starts_the_game(table, rules):
    """Three players ready up and the untouched countdown starts a trick-card game."""
    names = ["Alice", "Bob", "Carol"]
    room = table.seat(names)
    for name in names:
        table.send(name, "ready-toggle")

    table.scheduler.advance(rules.countdown_seconds - 1)
    assert not room.started

    table.scheduler.advance(1)
    assert room.started
    assert room.countdown_timer is None
    assert room.trick.prompt
    for name in names:
        assert len(table.player(name).hand) == rules.trick_hand_size
        assert table.transport.last(table.cid(name), "game-started") == {"type": "game-started", "kind": "trick-card"}
        assert len(table.view(name)["myHand"]) == rules.trick_hand_size
    assert table.transport.last(table.cid("Alice"), "lobby-view")["started"] is True
