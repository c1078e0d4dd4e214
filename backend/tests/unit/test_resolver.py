import pytest
from sqlmodel import Session

from models.connection import ConnectionRequest, ConnectionState
from models.notification import NotificationType
from services.errors import InvalidSelfReference
from services.resolver import ConnectionStateResolver
from services.store import ConnectionRequestStore, FriendListStore, NotificationSink


@pytest.fixture
def resolver(test_session: Session, feed):
    return ConnectionStateResolver(test_session, feed=feed)


def _pending(session: Session, from_id: str, to_id: str) -> ConnectionRequest:
    request = ConnectionRequest.between(from_id, to_id)
    session.add(request)
    session.commit()
    return request


def _befriend_one_side(session: Session, owner_id: str, friend_id: str):
    FriendListStore(session).add(owner_id, friend_id)
    session.commit()


def test_no_relationship(resolver, accounts):
    assert resolver.resolve("u1", "u2") == ConnectionState.none


def test_pending_direction_depends_on_perspective(resolver, test_session, accounts):
    request = _pending(test_session, "u1", "u2")

    assert resolver.resolve("u1", "u2") == ConnectionState.pending_outgoing
    state, pending = resolver.inspect("u2", "u1")
    assert state == ConnectionState.pending_incoming
    assert pending.id == request.id


def test_self_reference_is_rejected(resolver, accounts):
    with pytest.raises(InvalidSelfReference):
        resolver.resolve("u1", "u1")


def test_friends_win_over_a_stale_request(resolver, test_session, accounts):
    _befriend_one_side(test_session, "u1", "u2")
    _befriend_one_side(test_session, "u2", "u1")
    request = _pending(test_session, "u2", "u1")
    NotificationSink(test_session).append(
        "u1", NotificationType.friend_request, "u2", request.id
    )
    test_session.commit()

    assert resolver.resolve("u1", "u2") == ConnectionState.friends
    # the leftover request is deleted by the read, with its notification
    assert ConnectionRequestStore(test_session).find_pending("u1", "u2") is None
    assert NotificationSink(test_session).inbox("u1") == []


def test_half_written_friendship_is_completed_on_read(
    resolver, test_session, accounts
):
    # friends(u1) got u2, the write of friends(u2) never happened
    _befriend_one_side(test_session, "u1", "u2")
    friends = FriendListStore(test_session)
    assert not friends.contains("u2", "u1")

    assert resolver.resolve("u2", "u1") == ConnectionState.friends
    assert friends.contains("u2", "u1")
    assert friends.contains("u1", "u2")


def test_repair_is_idempotent(resolver, test_session, accounts):
    _befriend_one_side(test_session, "u2", "u1")

    fixes = resolver.repair("u1", "u2")
    assert fixes == ["added u2 to friends of u1"]
    assert resolver.repair("u1", "u2") == []
    assert resolver.repair("u3", "u4") == []


async def test_repair_is_published(resolver, test_session, feed, accounts):
    subscription = feed.subscribe(test_session, "u2", "u1")
    initial = await anext(subscription)
    assert initial.state == ConnectionState.none

    _befriend_one_side(test_session, "u1", "u2")
    resolver.resolve("u1", "u2")

    event = await anext(subscription)
    assert event.state == ConnectionState.friends
    assert not event.initial
    subscription.cancel()


def test_relations(resolver, test_session, accounts):
    _befriend_one_side(test_session, "u1", "u2")
    _pending(test_session, "u1", "u3")
    _pending(test_session, "u4", "u1")

    assert resolver.relations("u1") == {
        "u2": ConnectionState.friends,
        "u3": ConnectionState.pending_outgoing,
        "u4": ConnectionState.pending_incoming,
    }
    # the asymmetric friendship got completed while listing
    assert FriendListStore(test_session).contains("u2", "u1")
    assert resolver.relations("u3") == {"u1": ConnectionState.pending_incoming}
