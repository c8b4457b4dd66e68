"""
Post body normalization.

Flattens either body variant into an ordered list of content segments that the
document assembler can render without knowing which shape the post came in.
"""

import logging
from typing import List

from .errors import MissingMediaReference
from .models import (
    BlockBody, ContentSegment, ImageBlock, ImageSegment, ParagraphBlock,
    PostBody, TextBody, TextSegment,
)

logger = logging.getLogger(__name__)


def normalize_body(post_id: str, body: PostBody) -> List[ContentSegment]:
    """
    Convert a post body into content segments, preserving order.

    Flat text is passed through untouched as a single unwrapped segment; any
    image markup it carries is left for the browser to resolve. Block bodies
    yield one segment per paragraph (empty paragraphs dropped) and one per
    image block, preceded by a paragraph when the image block carries text.
    Repeated image references each produce a segment.

    Raises:
        MissingMediaReference: An image block names an id not in image_map.
    """
    if isinstance(body, TextBody):
        return [TextSegment(body.text, wrap=False)] if body.text else []

    if not isinstance(body, BlockBody):
        raise TypeError(f"Unsupported body type: {type(body).__name__}")

    segments: List[ContentSegment] = []
    if body.leading_text:
        segments.append(TextSegment(body.leading_text, wrap=False))

    for block in body.blocks:
        if isinstance(block, ImageBlock):
            asset = body.image_map.get(block.image_id)
            if asset is None:
                raise MissingMediaReference(post_id, block.image_id)
            if block.text:
                segments.append(TextSegment(block.text))
            segments.append(ImageSegment(block.image_id, asset.extension))
        elif isinstance(block, ParagraphBlock):
            if block.text:
                segments.append(TextSegment(block.text))
        else:
            logger.debug(f"Post {post_id}: ignoring block of type {block.type!r}")
    return segments
