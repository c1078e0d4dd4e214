from models.connection import ConnectionRequest, ConnectionState
from models.notification import NotificationType
from services.reconcile import reconcile_all, reconcile_job
from services.store import ConnectionRequestStore, FriendListStore, NotificationSink


def _damage(session):
    """u1 -> u2 half written, u3 <-> u4 friends with a leftover request"""
    friends = FriendListStore(session)
    friends.add("u1", "u2")
    friends.add("u3", "u4")
    friends.add("u4", "u3")
    stale = ConnectionRequest.between("u4", "u3")
    session.add(stale)
    session.flush()
    NotificationSink(session).append(
        "u3", NotificationType.friend_request, "u4", stale.id
    )
    session.commit()
    return stale.id


def test_dry_run_only_reports(test_session, accounts):
    stale_id = _damage(test_session)

    report = reconcile_all(test_session, dry_run=True)

    assert report.dry_run
    assert report.completed == [("u2", "u1")]
    assert report.stale_requests == [stale_id]
    assert report.total == 2
    assert not FriendListStore(test_session).contains("u2", "u1")
    assert ConnectionRequestStore(test_session).get(stale_id) is not None


def test_reconcile_restores_mutuality(test_session, feed, accounts, mocker):
    stale_id = _damage(test_session)
    alert = mocker.patch("services.reconcile.slack.send_message")
    publish = mocker.spy(feed, "publish")

    report = reconcile_all(test_session, feed=feed)

    assert report.total == 2
    friends = FriendListStore(test_session)
    assert friends.contains("u2", "u1")
    assert friends.asymmetric_entries() == []
    assert ConnectionRequestStore(test_session).get(stale_id) is None
    assert NotificationSink(test_session).inbox("u3") == []
    publish.assert_any_call("u2", "u1", ConnectionState.friends)
    publish.assert_any_call("u4", "u3", ConnectionState.friends)
    alert.assert_called_once()


def test_reconcile_clean_store_is_a_noop(manager, test_session, accounts, mocker):
    manager.accept(manager.send("u1", "u2").request_id, "u2")
    manager.send("u3", "u1")
    alert = mocker.patch("services.reconcile.slack.send_message")

    report = reconcile_all(test_session)

    assert report.total == 0
    alert.assert_not_called()
    assert manager.resolve("u1", "u3") == ConnectionState.pending_incoming


async def test_reconcile_job_uses_its_own_session(
    test_session, session_factory, accounts, mocker
):
    _damage(test_session)
    mocker.patch("services.reconcile.get_db", session_factory)
    mocker.patch("services.reconcile.slack.send_message")

    report = await reconcile_job()

    assert report.total == 2
    assert FriendListStore(test_session).asymmetric_entries() == []


async def test_reconcile_job_survives_database_errors(mocker):
    from sqlalchemy.exc import OperationalError

    mocker.patch(
        "services.reconcile.reconcile_all",
        side_effect=OperationalError("SELECT", {}, Exception("locked")),
    )
    mocker.patch("services.reconcile.get_db")

    assert await reconcile_job() is None
