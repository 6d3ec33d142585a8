"""Tests for session selection."""

import pytest

from umbra_client.core.errors import UnknownPeerError
from umbra_client.core.ledger import MessageLedger
from umbra_client.core.peers import PeerDirectory
from umbra_client.core.session import SessionSelector


def make_selector():
    directory = PeerDirectory()
    ledger = MessageLedger()
    return directory, ledger, SessionSelector(directory, ledger)


def test_select_known_peer_returns_history():
    directory, ledger, selector = make_selector()
    directory.upsert("P1")
    message = ledger.append_remote("P1", "hello", 5)

    result = selector.select("P1")

    assert selector.active_peer_id == "P1"
    assert result.peer.id == "P1"
    assert result.history == [message]


def test_select_unknown_peer_keeps_previous_session():
    directory, _, selector = make_selector()
    directory.upsert("P1")
    selector.select("P1")

    with pytest.raises(UnknownPeerError):
        selector.select("unknown")

    assert selector.active_peer_id == "P1"


def test_select_unknown_peer_without_session():
    _, _, selector = make_selector()

    with pytest.raises(UnknownPeerError):
        selector.select("unknown")

    assert selector.active_peer_id is None
    assert selector.visible_history() == []


def test_reselect_is_idempotent():
    directory, ledger, selector = make_selector()
    directory.upsert("P1")
    first = selector.select("P1")
    ledger.append_remote("P1", "new", 7)
    second = selector.select("P1")

    assert selector.active_peer_id == "P1"
    assert len(second.history) == len(first.history) + 1


def test_switching_sessions_keeps_messages():
    directory, ledger, selector = make_selector()
    directory.upsert("P1")
    directory.upsert("P2")
    selector.select("P1")
    ledger.append_remote("P2", "while away", 3)

    assert selector.select("P2").history[0].content == "while away"
    assert selector.is_active("P2")
    assert not selector.is_active("P1")


def test_select_then_send_ends_sent():
    directory, ledger, selector = make_selector()
    directory.upsert("P1")
    selector.select("P1")
    message = ledger.append_local("P1", "hi")
    ledger.mark_send_result(message.id, True)

    history = ledger.history_for("P1")
    assert len(history) == 1
    assert history[0].sender.value == "local"
    assert history[0].status.value == "sent"
