"""
Feed page decoding.

Turns the raw JSON of one listing page into a FeedPage. Post bodies come in
two historical shapes with no discriminant field: a flat `text` string or a
`blocks` list. The shape is decided here, once, by which field is present.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from .errors import MalformedResponse
from .models import (
    Block, BlockBody, EmbedAsset, FeedPage, ImageBlock, MediaAsset,
    ParagraphBlock, Post, PostBody, TextBody,
)

logger = logging.getLogger(__name__)

REQUIRED_ITEM_FIELDS = ('id', 'title', 'publishedDatetime', 'updatedDatetime')


def decode_feed_page(raw: str, url: Optional[str] = None) -> FeedPage:
    """
    Parse a listing response into a FeedPage.

    Args:
        raw: Response body text
        url: Page URL, only used in error messages

    Raises:
        MalformedResponse: If the body is not JSON or does not match the
            listing schema.
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise MalformedResponse(f"invalid JSON: {e}", url) from e

    if not isinstance(data, dict) or not isinstance(data.get('body'), dict):
        raise MalformedResponse("missing 'body' object", url)
    body = data['body']

    items = body.get('items')
    if not isinstance(items, list):
        raise MalformedResponse("missing 'body.items' list", url)

    next_url = body.get('nextUrl')
    if next_url is not None and not isinstance(next_url, str):
        raise MalformedResponse("'body.nextUrl' must be a string or null", url)

    posts = [_decode_post(item, url) for item in items]
    logger.debug(f"Decoded {len(posts)} posts, next cursor: {next_url}")
    return FeedPage(items=posts, next_url=next_url or None)


def _decode_post(item: Any, url: Optional[str]) -> Post:
    if not isinstance(item, dict):
        raise MalformedResponse("feed item is not an object", url)
    missing = [f for f in REQUIRED_ITEM_FIELDS if f not in item]
    if missing:
        raise MalformedResponse(f"feed item missing fields: {', '.join(missing)}", url)

    post_id = str(item['id'])
    if not (post_id.isascii() and post_id.isdigit()):
        raise MalformedResponse(f"post id is not numeric: {post_id!r}", url)

    raw_body = item.get('body')
    body = _decode_body(raw_body, post_id, url) if raw_body is not None else None

    return Post(
        id=post_id,
        title=str(item['title'] or ''),
        published_datetime=str(item['publishedDatetime']),
        updated_datetime=str(item['updatedDatetime']),
        cover_image_url=item.get('coverImageUrl'),
        body=body,
    )


def _decode_body(raw: Any, post_id: str, url: Optional[str]) -> PostBody:
    if not isinstance(raw, dict):
        raise MalformedResponse(f"post {post_id}: body is not an object", url)

    image_map = _decode_image_map(raw.get('imageMap') or {}, post_id, url)
    file_map = raw.get('fileMap') or {}
    embed_map = _decode_embed_map(raw.get('embedMap') or {})

    text = raw.get('text')
    blocks = raw.get('blocks')

    if blocks is not None:
        if not isinstance(blocks, list):
            raise MalformedResponse(f"post {post_id}: 'blocks' is not a list", url)
        return BlockBody(
            blocks=[_decode_block(b, post_id, url) for b in blocks],
            leading_text=text if isinstance(text, str) and text else None,
            image_map=image_map,
            file_map=file_map,
            embed_map=embed_map,
        )
    if text is not None:
        if not isinstance(text, str):
            raise MalformedResponse(f"post {post_id}: 'text' is not a string", url)
        return TextBody(text=text, image_map=image_map, file_map=file_map, embed_map=embed_map)

    # No text means the block variant, even when the block list is absent too
    return BlockBody(blocks=[], image_map=image_map, file_map=file_map, embed_map=embed_map)


def _decode_block(raw: Any, post_id: str, url: Optional[str]) -> Block:
    if not isinstance(raw, dict):
        raise MalformedResponse(f"post {post_id}: block is not an object", url)
    block_type = str(raw.get('type', ''))
    text = raw.get('text')
    # Field presence decides, not the type tag
    if raw.get('imageId') is not None:
        return ImageBlock(type=block_type, image_id=str(raw['imageId']),
                          text=str(text) if text is not None else "")
    if text is not None:
        return ParagraphBlock(type=block_type, text=str(text))
    return Block(type=block_type)


def _int_field(entry: Dict[str, Any], key: str, post_id: str, url: Optional[str]) -> int:
    value = entry.get(key) or 0
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"post {post_id}: image {key} is not an integer: {value!r}", url) from e


def _decode_image_map(raw: Any, post_id: str, url: Optional[str]) -> Dict[str, MediaAsset]:
    if not isinstance(raw, dict):
        raise MalformedResponse(f"post {post_id}: 'imageMap' is not an object", url)
    assets: Dict[str, MediaAsset] = {}
    for media_id, entry in raw.items():
        if not isinstance(entry, dict) or 'originalUrl' not in entry or 'extension' not in entry:
            raise MalformedResponse(f"post {post_id}: image {media_id!r} lacks originalUrl/extension", url)
        assets[media_id] = MediaAsset(
            id=str(entry.get('id', media_id)),
            extension=str(entry['extension']),
            original_url=str(entry['originalUrl']),
            thumbnail_url=str(entry.get('thumbnailUrl', '')),
            width=_int_field(entry, 'width', post_id, url),
            height=_int_field(entry, 'height', post_id, url),
        )
    return assets


def _decode_embed_map(raw: Any) -> Dict[str, EmbedAsset]:
    embeds: Dict[str, EmbedAsset] = {}
    if not isinstance(raw, dict):
        return embeds
    for embed_id, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        embeds[embed_id] = EmbedAsset(
            id=str(entry.get('id', embed_id)),
            service_provider=str(entry.get('serviceProvider', '')),
            content_id=str(entry.get('contentId', '')),
        )
    return embeds


def decoded_ids(page: FeedPage) -> List[str]:
    """Ids of the posts on a page, in feed order."""
    return [p.id for p in page.items]
