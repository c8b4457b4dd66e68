"""
Data model for feed pages, posts and their bodies.

The two historical body shapes are decoded once into distinct classes
(TextBody, BlockBody); everything downstream dispatches on the class.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union


@dataclass
class MediaAsset:
    id: str
    extension: str
    original_url: str
    thumbnail_url: str = ""
    width: int = 0
    height: int = 0


@dataclass
class EmbedAsset:
    id: str
    service_provider: str = ""
    content_id: str = ""


@dataclass
class Block:
    type: str  # 'p' | 'image' | anything else the API adds later


@dataclass
class ParagraphBlock(Block):
    text: str = ""


@dataclass
class ImageBlock(Block):
    image_id: str = ""
    text: str = ""  # rendered as a paragraph ahead of the image


@dataclass
class PostBody:
    image_map: Dict[str, MediaAsset] = field(default_factory=dict)
    file_map: Dict[str, dict] = field(default_factory=dict)
    embed_map: Dict[str, EmbedAsset] = field(default_factory=dict)


@dataclass
class TextBody(PostBody):
    """Legacy flat-text body: one markup string, images placed by convention."""
    text: str = ""


@dataclass
class BlockBody(PostBody):
    """Block-list body: ordered paragraph and image blocks."""
    blocks: List[Block] = field(default_factory=list)
    # Some posts carry both shapes; the text precedes the blocks.
    leading_text: Optional[str] = None


@dataclass
class Post:
    id: str
    title: str
    published_datetime: str
    updated_datetime: str
    cover_image_url: Optional[str] = None
    body: Optional[PostBody] = None

    @property
    def numeric_id(self) -> int:
        return int(self.id)

    @property
    def is_restricted(self) -> bool:
        return self.body is None


@dataclass
class FeedPage:
    items: List[Post]
    next_url: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class TextSegment:
    text: str
    # Block paragraphs are wrapped in <p>; flat-text markup is embedded as is.
    wrap: bool = True


@dataclass(frozen=True)
class ImageSegment:
    media_id: str
    extension: str

    @property
    def relative_path(self) -> str:
        return f"./{self.media_id}.{self.extension}"


ContentSegment = Union[TextSegment, ImageSegment]


@dataclass(frozen=True)
class CrawlBoundary:
    lower_bound_id: Optional[int] = None  # stop at/below this id
    upper_bound_id: Optional[int] = None  # skip anything above this id

    def is_past_lower(self, post_id: int) -> bool:
        return self.lower_bound_id is not None and post_id <= self.lower_bound_id

    def is_above_upper(self, post_id: int) -> bool:
        return self.upper_bound_id is not None and post_id > self.upper_bound_id
