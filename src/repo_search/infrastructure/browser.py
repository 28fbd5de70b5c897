"""Browser-open collaborator."""

from __future__ import annotations

import logging
import webbrowser

logger = logging.getLogger(__name__)


def open_in_browser(url: str) -> None:
    """Hand *url* to the system's default browser.

    Blocks until the browser launcher returns, so callers run it off the
    event loop.
    """
    try:
        opened = webbrowser.open(url, new=2)
    except webbrowser.Error as exc:
        logger.warning("Could not open %s: %s", url, exc)
        return
    if not opened:
        logger.warning("No browser available to open %s", url)
