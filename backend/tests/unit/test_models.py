"""Unit tests for database models."""

import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from models.account import Account, get_account_by_identifier
from models.connection import (
    ConnectionRequest,
    ConnectionState,
    FriendListEntry,
    canonical_pair,
)


def test_canonical_pair_is_order_independent():
    assert canonical_pair("u2", "u1") == ("u1", "u2")
    assert canonical_pair("u1", "u2") == ("u1", "u2")


def test_request_between_keeps_direction_and_canonical_pair():
    request = ConnectionRequest.between("u2", "u1")
    assert (request.from_id, request.to_id) == ("u2", "u1")
    assert (request.user_low_id, request.user_high_id) == ("u1", "u2")
    assert request.other_party("u2") == "u1"
    assert request.other_party("u1") == "u2"


@pytest.mark.parametrize(
    "state, mirrored",
    [
        (ConnectionState.none, ConnectionState.none),
        (ConnectionState.friends, ConnectionState.friends),
        (ConnectionState.pending_outgoing, ConnectionState.pending_incoming),
        (ConnectionState.pending_incoming, ConnectionState.pending_outgoing),
    ],
)
def test_state_mirrored(state, mirrored):
    assert state.mirrored() == mirrored


def test_one_live_request_per_unordered_pair(test_session, accounts):
    test_session.add(ConnectionRequest.between("u1", "u2"))
    test_session.commit()

    test_session.add(ConnectionRequest.between("u2", "u1"))
    with pytest.raises(IntegrityError):
        test_session.commit()
    test_session.rollback()


def test_timestamps_are_utc_aware(test_session, accounts):
    test_session.add(FriendListEntry(owner_id="u1", friend_id="u2"))
    test_session.commit()
    test_session.expire_all()

    entry = test_session.get(FriendListEntry, {"owner_id": "u1", "friend_id": "u2"})
    assert entry.added_at.tzinfo is not None
    assert entry.added_at.utcoffset() == datetime.timedelta(0)


def test_account_lookup_by_username_or_id(test_session, accounts):
    assert get_account_by_identifier(test_session, "alice").id == "u1"
    assert get_account_by_identifier(test_session, "u2").username == "bob"
    assert get_account_by_identifier(test_session, "nobody") is None


def test_account_unique_email(test_session, accounts):
    test_session.add(Account(id="u9", name="Alice bis", email="alice@example.com"))
    with pytest.raises(IntegrityError):
        test_session.commit()
    test_session.rollback()
