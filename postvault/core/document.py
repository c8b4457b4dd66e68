"""
Document assembly.

Builds the offline HTML document for one post: a fixed metadata header
followed by one element per content segment, with images pointing at the
files the media downloader left next to the document.
"""

import logging
from typing import Iterable

from .models import ContentSegment, ImageSegment, Post, TextSegment


DOCUMENT_TEMPLATE = """<html><head><meta http-equiv="Content-Type" content="text/html; charset=UTF-8"><title>{title}</title></head><body>
      <p>
        id: {id}<br />
        title: {title}<br />
        published: {published}<br />
        updated: {updated}<br />
      </p>
      {content}
    </body></html>"""


class DocumentAssembler:
    """
    Renders posts to self-contained HTML.

    Text is embedded verbatim. Post bodies already contain markup, and the
    archive keeps it exactly as the API delivered it.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def render_segment(self, segment: ContentSegment) -> str:
        if isinstance(segment, ImageSegment):
            return f'<p><img src="{segment.relative_path}" /></p>'
        if isinstance(segment, TextSegment):
            return f"<p>{segment.text}</p>" if segment.wrap else segment.text
        raise TypeError(f"Unknown segment type: {type(segment).__name__}")

    def render_body(self, segments: Iterable[ContentSegment]) -> str:
        return "".join(self.render_segment(s) for s in segments)

    def assemble(self, post: Post, segments: Iterable[ContentSegment]) -> str:
        """Return the full HTML document for a post."""
        content = self.render_body(segments)
        html = DOCUMENT_TEMPLATE.format(
            id=post.id,
            title=post.title,
            published=post.published_datetime,
            updated=post.updated_datetime,
            content=content,
        )
        self.logger.debug(f"Assembled document for post {post.id} ({len(html)} chars)")
        return html
