#!/usr/bin/env python3
"""
Tests for render dispatch and the network idle wait, without a browser.
"""

import os

import pytest

from conftest import FakeEngine
from postvault.core.errors import RenderFailure
from postvault.core.pdf_engines.playwright_engine import NetworkIdleTracker
from postvault.core.pdf_engines.weasyprint_engine import WeasyPrintEngine
from postvault.core.pdf_generator import PDFGenerator, RenderTarget


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_render_target_needs_exactly_one_location():
    with pytest.raises(ValueError):
        RenderTarget()
    with pytest.raises(ValueError):
        RenderTarget(document_path="a.html", url="https://x")
    assert RenderTarget(url="https://x").location == "https://x"


def test_render_local_document_with_screenshot(tmp_path):
    engine = FakeEngine()
    generator = PDFGenerator(engine=engine, screenshot=True)
    doc = tmp_path / "index.html"
    doc.write_text("<html></html>", encoding="utf-8")

    result = generator.render("12", RenderTarget(document_path=str(doc)), str(tmp_path), "12-Title")

    assert result.pdf_path == os.path.join(str(tmp_path), "12-Title.pdf")
    assert result.image_path == os.path.join(str(tmp_path), "12-Title.jpg")
    assert os.path.exists(result.pdf_path) and os.path.exists(result.image_path)
    assert engine.targets == [str(doc)]


def test_render_url_target(tmp_path):
    engine = FakeEngine()
    result = PDFGenerator(mode="url", engine=engine).render(
        "12", RenderTarget(url="https://alice.fanbox.cc/posts/12"), str(tmp_path), "12-Title")
    assert engine.targets == ["https://alice.fanbox.cc/posts/12"]
    assert result.image_path is None


def test_render_without_output_raises_render_failure(tmp_path):
    engine = FakeEngine(fail_on={"posts/12"})
    generator = PDFGenerator(mode="url", engine=engine)
    with pytest.raises(RenderFailure) as exc:
        generator.render("12", RenderTarget(url="https://alice.fanbox.cc/posts/12"), str(tmp_path), "12-Title")
    assert exc.value.post_id == "12"


def test_engine_exception_becomes_render_failure(tmp_path):
    class Exploding(FakeEngine):
        def generate(self, target, output_path, screenshot_path=None):
            raise RuntimeError("browser crashed")

    with pytest.raises(RenderFailure):
        PDFGenerator(engine=Exploding()).render(
            "3", RenderTarget(document_path=str(tmp_path / "index.html")), str(tmp_path), "3-x")


def test_weasyprint_cannot_take_screenshots_or_urls(tmp_path):
    generator = PDFGenerator(engine=WeasyPrintEngine(), screenshot=True)
    assert generator.screenshot is False
    with pytest.raises(RenderFailure):
        generator.render("5", RenderTarget(url="https://alice.fanbox.cc/posts/5"), str(tmp_path), "5-x")


def test_local_only_fetcher_blocks_remote_and_outside_paths(tmp_path):
    post_dir = tmp_path / "out" / "1"
    post_dir.mkdir(parents=True)
    (post_dir / "a.png").write_bytes(b"png")
    (tmp_path / "secret.txt").write_bytes(b"no")
    fetch = WeasyPrintEngine()._local_only_fetcher(allowed_base=str(post_dir))

    assert fetch((post_dir / "a.png").as_uri())["string"] == b"png"
    with pytest.raises(RuntimeError):
        fetch("https://downloads.fanbox.cc/a.png")
    with pytest.raises(RuntimeError):
        fetch((tmp_path / "secret.txt").as_uri())


def test_idle_reached_after_quiet_window():
    clock = FakeClock()
    tracker = NetworkIdleTracker(clock=clock)
    pumps = []

    def pump(secs):
        pumps.append(secs)
        # Activity during the first two pumps, then silence
        if len(pumps) <= 2:
            clock.now += 0.1
            tracker.touch()
        else:
            clock.now += secs

    assert tracker.wait_for_idle(quiet_window=0.5, timeout=10, pump=pump)
    assert tracker.events == 2
    assert len(pumps) == 3


def test_idle_gives_up_at_deadline():
    clock = FakeClock()
    tracker = NetworkIdleTracker(clock=clock)

    def busy(secs):
        clock.now += 0.2
        tracker.touch()

    assert tracker.wait_for_idle(quiet_window=0.5, timeout=2, pump=busy) is False
    assert clock.now >= 102.0


def test_idle_attach_subscribes_to_network_events():
    class FakePage:
        def __init__(self):
            self.handlers = {}

        def on(self, event, handler):
            self.handlers[event] = handler

    page = FakePage()
    tracker = NetworkIdleTracker()
    tracker.attach(page)
    assert set(page.handlers) == {"request", "requestfinished", "requestfailed"}
    page.handlers["request"]("fake-request")
    assert tracker.events == 1
