"""Local launcher: serves ``app:app`` with reload and opens the API docs.

Without the browser tab: ``uvicorn app:app --reload``.
"""

from __future__ import annotations

import threading
import webbrowser

import uvicorn

from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)

HOST = "127.0.0.1"
PORT = 8000


def main() -> None:
    docs_url = f"http://{HOST}:{PORT}/docs"
    logger.info("Booking engine starting | docs=%s", docs_url)
    # Give startup (schema, seed, horizon) a head start before the tab opens.
    threading.Timer(2.0, webbrowser.open, args=(docs_url,)).start()
    uvicorn.run("app:app", host=HOST, port=PORT, reload=True, log_level="info")


if __name__ == "__main__":
    main()
