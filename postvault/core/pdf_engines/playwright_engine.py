"""
Playwright PDF Engine

Renders a post by navigating headless Chromium to it, either the live post page
or the local document, then printing it to PDF and optionally capturing a
full-page JPEG screenshot.

Post pages load their images after the load event, so capture waits for the
network to go quiet first. One browser is launched per run; every post gets
its own page, closed whatever happens.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from pathlib import Path
from typing import Callable, Optional

try:
    from playwright.sync_api import Error as PlaywrightError
    from playwright.sync_api import sync_playwright
except Exception:  # pragma: no cover - handled at runtime
    PlaywrightError = Exception
    sync_playwright = None


NETWORK_EVENTS = ("request", "requestfinished", "requestfailed")


class NetworkIdleTracker:
    """
    Tracks the time of the last network activity event on a page.

    The network counts as idle once no event has been observed for a full
    quiet window. Events may arrive on another thread (notify through the
    condition) or be dispatched by the pump callable while waiting, which is
    how the synchronous Playwright API delivers them.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._cond = threading.Condition()
        self._last_activity = clock()
        self.events = 0

    def touch(self, *_args):
        with self._cond:
            self._last_activity = self._clock()
            self.events += 1
            self._cond.notify_all()

    def attach(self, page):
        for event in NETWORK_EVENTS:
            page.on(event, self.touch)

    def wait_for_idle(self, quiet_window: float, timeout: float,
                      pump: Optional[Callable[[float], None]] = None) -> bool:
        """
        Block until the network has been quiet for quiet_window seconds.

        Args:
            quiet_window: Seconds without activity that count as idle
            timeout: Upper bound on the whole wait
            pump: Called with a wait duration in seconds to let the event
                source deliver events; defaults to waiting on the condition

        Returns:
            True when idle was reached, False when the deadline passed first
        """
        deadline = self._clock() + timeout
        while True:
            with self._cond:
                now = self._clock()
                quiet_left = self._last_activity + quiet_window - now
                if quiet_left <= 0:
                    return True
                if now >= deadline:
                    return False
                wait = min(quiet_left, deadline - now)
                if pump is None:
                    self._cond.wait(wait)
                    continue
            pump(wait)


class PlaywrightEngine:
    name = "playwright"
    supports_urls = True
    supports_screenshots = True

    def __init__(self, navigation_timeout: float = 30.0, idle_quiet_window: float = 0.5,
                 idle_timeout: float = 30.0, settle_grace: float = 1.0):
        self.logger = logging.getLogger(__name__)
        self.navigation_timeout = navigation_timeout
        self.idle_quiet_window = idle_quiet_window
        self.idle_timeout = idle_timeout
        self.settle_grace = settle_grace
        self._playwright = None
        self._browser = None

    def available(self) -> bool:
        return sync_playwright is not None

    def open(self):
        """Launch the shared browser. Safe to call more than once."""
        if self._browser is not None:
            return
        if sync_playwright is None:
            raise RuntimeError("Playwright is not installed. Please install 'playwright'.")
        self._playwright = sync_playwright().start()
        try:
            self._browser = self._playwright.chromium.launch(headless=True)
        except PlaywrightError:
            self._playwright.stop()
            self._playwright = None
            raise
        self.logger.info("Launched headless Chromium")

    def close(self):
        if self._browser is not None:
            self._browser.close()
            self._browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None

    def generate(self, target: str, output_path: str, screenshot_path: Optional[str] = None) -> bool:
        """
        Navigate to target (URL or local file path) and print it to PDF.

        Args:
            target: http(s) URL of the live post, or a local HTML path
            output_path: Target PDF path
            screenshot_path: When set, also save a full-page JPEG here
        """
        self.open()
        url = target if target.startswith(('http://', 'https://')) else Path(os.path.abspath(target)).as_uri()
        page = self._browser.new_page()
        try:
            page.set_default_timeout(self.navigation_timeout * 1000)
            tracker = NetworkIdleTracker()
            tracker.attach(page)
            page.goto(url, wait_until="load")
            idle = tracker.wait_for_idle(
                self.idle_quiet_window,
                self.idle_timeout,
                pump=lambda secs: page.wait_for_timeout(max(secs, 0.01) * 1000),
            )
            if not idle:
                self.logger.warning(f"Network did not settle within {self.idle_timeout}s: {url}")
            if self.settle_grace:
                page.wait_for_timeout(self.settle_grace * 1000)

            page.pdf(path=output_path, format="A4", print_background=True,
                     margin={"top": "1in", "bottom": "1in", "left": "1in", "right": "1in"})
            if screenshot_path:
                page.screenshot(path=screenshot_path, full_page=True, type="jpeg")
            return os.path.exists(output_path) and os.path.getsize(output_path) > 0
        except PlaywrightError as e:
            self.logger.error(f"Playwright render failed for {url}: {e}")
            return False
        finally:
            page.close()
