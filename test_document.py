#!/usr/bin/env python3
"""
Tests for body normalization and document assembly.
"""

import pytest

from postvault.core.document import DocumentAssembler
from postvault.core.errors import MissingMediaReference
from postvault.core.models import (
    Block, BlockBody, ImageBlock, ImageSegment, MediaAsset, ParagraphBlock,
    Post, TextBody, TextSegment,
)
from postvault.core.normalizer import normalize_body


def _asset(media_id, ext="png"):
    return MediaAsset(id=media_id, extension=ext, original_url=f"http://x/{media_id}.{ext}")


def _post(body):
    return Post(id="100", title="Sketch dump", published_datetime="2021-01-01T00:00:00+09:00",
                updated_datetime="2021-01-02T00:00:00+09:00", body=body)


def test_flat_text_is_one_unwrapped_segment():
    segments = normalize_body("1", TextBody(text="<p>raw</p>"))
    assert segments == [TextSegment("<p>raw</p>", wrap=False)]


def test_block_order_and_repeats_preserved():
    body = BlockBody(
        blocks=[
            ImageBlock(type="image", image_id="a"),
            ParagraphBlock(type="p", text="first"),
            ParagraphBlock(type="p", text=""),
            ImageBlock(type="image", image_id="b"),
            Block(type="file"),
            ImageBlock(type="image", image_id="a"),
        ],
        image_map={"a": _asset("a"), "b": _asset("b", "jpeg")},
    )
    segments = normalize_body("1", body)
    assert segments == [
        ImageSegment("a", "png"),
        TextSegment("first"),
        ImageSegment("b", "jpeg"),
        ImageSegment("a", "png"),
    ]


def test_missing_media_reference():
    body = BlockBody(blocks=[ImageBlock(type="image", image_id="missing")], image_map={})
    with pytest.raises(MissingMediaReference) as exc:
        normalize_body("55", body)
    assert exc.value.post_id == "55"
    assert exc.value.media_id == "missing"


def test_block_document_paragraph_then_image():
    body = BlockBody(
        blocks=[ParagraphBlock(type="p", text="hello"), ImageBlock(type="image", image_id="img1")],
        image_map={"img1": _asset("img1")},
    )
    post = _post(body)
    html = DocumentAssembler().assemble(post, normalize_body(post.id, body))

    para = html.index("<p>hello</p>")
    img = html.index('<img src="./img1.png" />')
    assert para < img


def test_flat_text_document_embeds_verbatim():
    body = TextBody(text="<p>raw</p>")
    assembler = DocumentAssembler()
    segments = normalize_body("100", body)

    assert assembler.render_body(segments) == "<p>raw</p>"
    html = assembler.assemble(_post(body), segments)
    assert "<p>raw</p>" in html
    assert "&lt;" not in html


def test_header_block():
    html = DocumentAssembler().assemble(_post(TextBody(text="")), [])
    assert "id: 100<br />" in html
    assert "title: Sketch dump<br />" in html
    assert "published: 2021-01-01T00:00:00+09:00<br />" in html
    assert "updated: 2021-01-02T00:00:00+09:00<br />" in html
    assert 'charset=UTF-8' in html


def test_image_block_text_comes_before_the_image():
    body = BlockBody(
        blocks=[ImageBlock(type="image", image_id="a", text="caption")],
        image_map={"a": _asset("a")},
    )
    assert normalize_body("1", body) == [TextSegment("caption"), ImageSegment("a", "png")]


def test_empty_block_list_yields_header_only_document():
    body = BlockBody(blocks=[])
    segments = normalize_body("100", body)
    assert segments == []
    html = DocumentAssembler().assemble(_post(body), segments)
    assert "id: 100<br />" in html
