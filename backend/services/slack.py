import logging

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

import settings

logger = logging.getLogger("soundalchemy.slack")


class SlackBot:
    """Operational alerts, logged when no token is configured"""

    def __init__(self, channel: str = "#soundalchemy-ops"):
        self.channel = channel
        self.client = WebClient(token=settings.SLACK_TOKEN) if settings.SLACK_TOKEN else None

    def send_message(self, text: str, channel: str | None = None) -> bool:
        if not self.client:
            logger.info(text)
            return False

        try:
            response = self.client.chat_postMessage(
                channel=channel or self.channel, text=text
            )
        except SlackApiError as e:
            logger.error(f"Slack API error: {e.response['error']}")
            return False

        if not response["ok"]:
            logger.error(
                f"Failed to send message: {response.get('error', 'Unknown error')}"
            )
            return False
        return True


slack = SlackBot()
