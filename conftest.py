"""Shared test doubles: an in-memory HTTP session and a recording render engine."""

import json
import os
from typing import Dict, List, Optional

import pytest
import requests


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"", chunks: Optional[List[bytes]] = None,
                 encoding: Optional[str] = "utf-8"):
        self.status_code = status_code
        self.content = content
        self.chunks = chunks if chunks is not None else [content]
        self.encoding = encoding

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def iter_content(self, chunk_size=1):
        for chunk in self.chunks:
            yield chunk

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeSession:
    """Maps URLs to FakeResponse objects or exceptions to raise."""

    def __init__(self, routes: Optional[Dict[str, object]] = None, on_get=None):
        self.routes = dict(routes or {})
        self.headers: Dict[str, str] = {}
        self.calls: List[Dict[str, object]] = []
        self.on_get = on_get
        self.closed = False

    def get(self, url, headers=None, timeout=None, stream=False):
        self.calls.append({"url": url, "headers": headers or {}, "timeout": timeout, "stream": stream})
        if self.on_get:
            self.on_get(url)
        target = self.routes.get(url)
        if target is None:
            return FakeResponse(status_code=404)
        if isinstance(target, Exception):
            raise target
        return target

    @property
    def urls(self) -> List[str]:
        return [c["url"] for c in self.calls]

    def close(self):
        self.closed = True


class FakeEngine:
    name = "fake"
    supports_urls = True
    supports_screenshots = True

    def __init__(self, fail_on: Optional[set] = None):
        self.fail_on = fail_on or set()
        self.targets: List[str] = []
        self.opened = 0
        self.closed = 0

    def available(self):
        return True

    def open(self):
        self.opened += 1

    def close(self):
        self.closed += 1

    def generate(self, target, output_path, screenshot_path=None):
        self.targets.append(target)
        if any(marker in target for marker in self.fail_on):
            return False
        with open(output_path, "wb") as f:
            f.write(b"%PDF-1.4 fake")
        if screenshot_path:
            with open(screenshot_path, "wb") as f:
                f.write(b"\xff\xd8\xff fake")
        return True


SEED_URL = "https://api.fanbox.cc/post.listCreator?creatorId=alice&limit=10"


def make_item(post_id, body=..., title=None):
    if body is ...:
        body = {"blocks": [{"type": "p", "text": f"post {post_id}"}], "imageMap": {}, "fileMap": {}, "embedMap": {}}
    return {
        "id": str(post_id),
        "title": title if title is not None else f"Title {post_id}",
        "publishedDatetime": "2021-03-01T12:00:00+09:00",
        "updatedDatetime": "2021-03-02T12:00:00+09:00",
        "coverImageUrl": None,
        "body": body,
    }


def make_page(items, next_url=None) -> FakeResponse:
    payload = {"body": {"items": items, "nextUrl": next_url}}
    return FakeResponse(content=json.dumps(payload).encode("utf-8"))


def image_entry(media_id, ext="png", url=None):
    return {
        "id": media_id,
        "extension": ext,
        "width": 100,
        "height": 80,
        "originalUrl": url or f"https://downloads.fanbox.cc/images/{media_id}.{ext}",
        "thumbnailUrl": f"https://downloads.fanbox.cc/thumb/{media_id}.{ext}",
    }


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def out_dir(tmp_path):
    path = tmp_path / "out"
    path.mkdir()
    return str(path)


def post_dir_exists(out_dir, post_id) -> bool:
    return os.path.isdir(os.path.join(out_dir, str(post_id)))
