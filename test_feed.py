#!/usr/bin/env python3
"""
Tests for the feed client and page decoder, without network.
"""

import json

import pytest
import requests

from conftest import FakeResponse, FakeSession, SEED_URL, image_entry, make_item, make_page
from postvault.core.errors import MalformedResponse, TransportError
from postvault.core.feed_client import FeedClient
from postvault.core.feed_decoder import decode_feed_page
from postvault.core.models import BlockBody, ImageBlock, ParagraphBlock, TextBody, Block


def _raw(items, next_url=None):
    return json.dumps({"body": {"items": items, "nextUrl": next_url}})


def test_seed_url_and_origin_header():
    session = FakeSession({SEED_URL: make_page([])})
    client = FeedClient("alice", session=session, timeout=12)
    assert client.seed_url() == SEED_URL

    client.fetch_page(client.seed_url())
    call = session.calls[0]
    assert call["headers"]["Origin"] == "https://alice.fanbox.cc"
    assert call["timeout"] == 12


def test_fetch_page_returns_body_text():
    session = FakeSession({SEED_URL: FakeResponse(content='{"body": "日本"}'.encode("utf-8"))})
    client = FeedClient("alice", session=session)
    assert client.fetch_page(SEED_URL) == '{"body": "日本"}'


def test_fetch_page_http_error_is_transport_error():
    session = FakeSession({SEED_URL: FakeResponse(status_code=503)})
    client = FeedClient("alice", session=session)
    with pytest.raises(TransportError) as exc:
        client.fetch_page(SEED_URL)
    assert exc.value.status_code == 503


def test_fetch_page_connection_error_is_transport_error():
    session = FakeSession({SEED_URL: requests.ConnectionError("refused")})
    client = FeedClient("alice", session=session)
    with pytest.raises(TransportError):
        client.fetch_page(SEED_URL)


def test_post_url():
    client = FeedClient("alice", session=FakeSession())
    assert client.post_url("1234") == "https://alice.fanbox.cc/posts/1234"


def test_decode_block_list_body():
    body = {
        "blocks": [
            {"type": "p", "text": "hello"},
            {"type": "image", "imageId": "img1"},
            {"type": "url_embed"},
        ],
        "imageMap": {"img1": image_entry("img1")},
        "embedMap": {"e1": {"id": "e1", "serviceProvider": "youtube", "contentId": "abc"}},
    }
    page = decode_feed_page(_raw([make_item(42, body)], "https://api.fanbox.cc/next"))

    assert page.next_url == "https://api.fanbox.cc/next"
    post = page.items[0]
    assert post.id == "42" and post.numeric_id == 42
    assert isinstance(post.body, BlockBody)
    assert isinstance(post.body.blocks[0], ParagraphBlock)
    assert isinstance(post.body.blocks[1], ImageBlock)
    assert post.body.blocks[1].image_id == "img1"
    assert type(post.body.blocks[2]) is Block
    assert post.body.image_map["img1"].extension == "png"
    assert post.body.image_map["img1"].width == 100
    assert post.body.embed_map["e1"].service_provider == "youtube"


def test_decode_flat_text_body():
    page = decode_feed_page(_raw([make_item(7, {"text": "<p>raw</p>"})]))
    body = page.items[0].body
    assert isinstance(body, TextBody)
    assert body.text == "<p>raw</p>"
    assert body.image_map == {}


def test_decode_text_and_blocks_keeps_text_in_front():
    body = {"text": "intro", "blocks": [{"type": "p", "text": "more"}]}
    post = decode_feed_page(_raw([make_item(7, body)])).items[0]
    assert isinstance(post.body, BlockBody)
    assert post.body.leading_text == "intro"


def test_decode_restricted_post_has_no_body():
    page = decode_feed_page(_raw([make_item(9, None)]))
    assert page.items[0].body is None
    assert page.items[0].is_restricted


def test_decode_empty_page_is_terminal_even_with_cursor():
    page = decode_feed_page(_raw([], "https://api.fanbox.cc/next"))
    assert page.is_terminal


def test_decode_body_without_text_or_blocks_is_empty_block_list():
    body = {"imageMap": {"img1": image_entry("img1")}, "fileMap": {}}
    post = decode_feed_page(_raw([make_item(11, body)])).items[0]
    assert isinstance(post.body, BlockBody)
    assert post.body.blocks == []
    assert post.body.leading_text is None
    assert set(post.body.image_map) == {"img1"}


def test_decode_image_block_keeps_its_text():
    body = {"blocks": [{"type": "image", "imageId": "img1", "text": "caption"}],
            "imageMap": {"img1": image_entry("img1")}}
    block = decode_feed_page(_raw([make_item(12, body)])).items[0].body.blocks[0]
    assert isinstance(block, ImageBlock)
    assert block.image_id == "img1" and block.text == "caption"


@pytest.mark.parametrize("raw", [
    "not json",
    json.dumps({"items": []}),
    json.dumps({"body": {"nextUrl": None}}),
    json.dumps({"body": {"items": [{"id": "1"}]}}),
    _raw([make_item(1, {"blocks": "p"})]),
    _raw([make_item(1, {"blocks": [], "imageMap": {"a": {"id": "a"}}})]),
    _raw([make_item(1, {"blocks": [], "imageMap": {"a": dict(image_entry("a"), width="wide")}})]),
    _raw([make_item("abc")]),
    _raw([make_item("²")]),
])
def test_decode_rejects_schema_mismatch(raw):
    with pytest.raises(MalformedResponse):
        decode_feed_page(raw)
