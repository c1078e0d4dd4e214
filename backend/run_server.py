#!/usr/bin/env python3
"""Production runner for the connections API

Every worker has its own in-process change feed: more than one worker is
only allowed with CHANGE_FEED_POLL_SECONDS set, so each feed also picks up
the transitions committed by the other workers.
"""

import os

import uvicorn

import settings

PORT = int(os.getenv("PORT", "3626"))


def worker_count() -> int:
    workers = int(os.getenv("WEB_WORKERS", "1"))
    if workers > 1 and not settings.CHANGE_FEED_POLL_SECONDS:
        raise SystemExit(
            f"WEB_WORKERS={workers} needs CHANGE_FEED_POLL_SECONDS > 0: "
            "connection feeds would miss other workers' transitions"
        )
    return workers


if __name__ == "__main__":  # pragma: no cover
    uvicorn.run(
        "app:create_app",
        factory=True,
        host="127.0.0.1",
        port=PORT,
        workers=worker_count(),
        log_level="info",
        proxy_headers=True,
    )
