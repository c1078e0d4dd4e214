#!/usr/bin/env python3
"""Single-process dev server with reload, the feed needs no polling here"""

import setproctitle
import uvicorn

if __name__ == "__main__":  # pragma: no cover
    setproctitle.setproctitle("SoundAlchemy connections DEV")
    uvicorn.run("app:create_app", factory=True, port=8000, reload=True)
