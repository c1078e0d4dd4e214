from fastapi.testclient import TestClient


def _send(client, act_as, sender, recipient_username):
    act_as(sender)
    return client.post(f"/connections/request/{recipient_username}").json()


def test_notification_inbox_flow(client: TestClient, act_as, accounts):
    alice, bob, carol = accounts[:3]
    _send(client, act_as, bob, "alice")
    _send(client, act_as, carol, "alice")

    act_as(alice)
    assert client.get("/notifications/unread-count").json() == {"unread": 2}
    notifications = client.get("/notifications").json()["notifications"]
    assert {n["from"]["username"] for n in notifications} == {"bob", "carol"}
    assert {n["type"] for n in notifications} == {"friend_request"}

    first = notifications[0]["id"]
    r = client.post(f"/notifications/{first}/read")
    assert r.status_code == 200
    assert client.get("/notifications/unread-count").json() == {"unread": 1}
    unread = client.get("/notifications?unread=true").json()["notifications"]
    assert [n["id"] for n in unread] != [first]
    assert len(unread) == 1

    assert client.post("/notifications/read-all").json() == {"updated": 1}
    assert client.get("/notifications/unread-count").json() == {"unread": 0}

    assert client.delete(f"/notifications/{first}").status_code == 200
    assert len(client.get("/notifications").json()["notifications"]) == 1
    assert client.delete("/notifications").json() == {"deleted": 1}
    assert client.get("/notifications").json() == {"notifications": []}


def test_acceptance_is_notified(client, act_as, accounts):
    alice, bob = accounts[:2]
    request_id = _send(client, act_as, alice, "bob")["request_id"]

    act_as(bob)
    client.post(f"/connections/accept/{request_id}")
    assert client.get("/notifications").json() == {"notifications": []}

    act_as(alice)
    notifications = client.get("/notifications").json()["notifications"]
    assert [n["type"] for n in notifications] == ["friend_accepted"]
    assert notifications[0]["from"]["id"] == bob.id


def test_other_inboxes_are_not_reachable(client, act_as, accounts):
    alice, bob = accounts[:2]
    _send(client, act_as, alice, "bob")

    act_as(bob)
    notification_id = client.get("/notifications").json()["notifications"][0]["id"]

    act_as(alice)
    assert client.post(f"/notifications/{notification_id}/read").status_code == 404
    assert client.delete(f"/notifications/{notification_id}").status_code == 404
    act_as(bob)
    assert client.get("/notifications/unread-count").json() == {"unread": 1}
