import pytest

from models.account import Account
from services import email


@pytest.fixture
def pair():
    return (
        Account(id="u1", name="Alice", email="alice@example.com", username="alice"),
        Account(id="u2", name="Bob", email="bob@example.com", username="bob"),
    )


def test_skipped_in_testing_mode(pair, mocker):
    smtp = mocker.patch("services.email.smtplib.SMTP")
    assert email.send_friend_request_email(requester=pair[0], recipient=pair[1]) is False
    smtp.assert_not_called()


@pytest.fixture
def smtp(monkeypatch, mocker):
    monkeypatch.setattr("settings.TESTING_MODE", False)
    monkeypatch.setattr("settings.SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr("settings.SMTP_USERNAME", "mailer")
    monkeypatch.setattr("settings.SMTP_PASSWORD", "secret")
    smtp = mocker.patch("services.email.smtplib.SMTP")
    return smtp.return_value.__enter__.return_value


def test_friend_request_email(pair, smtp):
    alice, bob = pair
    assert email.send_friend_request_email(requester=alice, recipient=bob)

    message = smtp.send_message.call_args.args[0]
    assert message["To"] == "bob@example.com"
    assert message["Subject"] == "Alice wants to connect on SoundAlchemy"
    smtp.login.assert_called_once_with("mailer", "secret")


def test_friend_accepted_email_links_the_channel(pair, smtp):
    alice, bob = pair
    assert email.send_friend_accepted_email(acceptor=bob, original_requester=alice)

    message = smtp.send_message.call_args.args[0]
    assert message["To"] == "alice@example.com"
    plain = message.get_payload()[0].get_payload(decode=True).decode()
    assert "/musician/bob" in plain


def test_smtp_errors_are_not_raised(pair, smtp):
    smtp.send_message.side_effect = OSError("connection reset")
    assert email.send_friend_request_email(requester=pair[0], recipient=pair[1]) is False


def test_names_are_escaped_in_html(smtp):
    mallory = Account(
        id="u9", name="<b>Mallory</b> & co", email="m@example.com", username="m"
    )
    bob = Account(id="u2", name="Bob", email="bob@example.com", username="bob")
    assert email.send_friend_request_email(requester=mallory, recipient=bob)

    message = smtp.send_message.call_args.args[0]
    plain, html = (
        part.get_payload(decode=True).decode() for part in message.get_payload()
    )
    assert "&lt;b&gt;Mallory&lt;/b&gt; &amp; co" in html
    assert "<b>Mallory" not in html
    assert "<b>Mallory</b> & co" in plain
