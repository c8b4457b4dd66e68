"""
Postvault Orchestrator: walks the creator feed and archives each post.

Pages are fetched strictly in sequence and posts are processed one at a time,
newest first. Only the media downloads of a single post run concurrently; the
rendering engine is shared across the run and sees one post at a time.
"""

from __future__ import annotations

import time
import logging
import threading
from enum import Enum
from typing import Callable, Optional, List, Dict

from .assets import MediaDownloader
from .document import DocumentAssembler
from .errors import PostError
from .feed_client import FeedClient
from .feed_decoder import decode_feed_page, decoded_ids
from .logger import create_error_tracker
from .models import FeedPage, Post
from .normalizer import normalize_body
from .pdf_generator import PDFGenerator, RenderTarget
from postvault.utils.config import RunConfig
from postvault.utils.file_manager import FileManager
from postvault.utils.manifest import Manifest, ManifestRecord


class CrawlState(Enum):
    FETCHING_PAGE = "fetching_page"
    DECODING_PAGE = "decoding_page"
    PROCESSING_ITEMS = "processing_items"
    DONE = "done"


class PostvaultController:
    def __init__(self, config: RunConfig, logger: Optional[logging.Logger] = None,
                 feed: Optional[FeedClient] = None,
                 downloader: Optional[MediaDownloader] = None,
                 renderer: Optional[PDFGenerator] = None):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.boundary = config.boundary
        self.feed = feed or FeedClient(config.creator_id, page_size=config.page_size,
                                       timeout=config.request_timeout)
        self.downloader = downloader or MediaDownloader(timeout=config.request_timeout)
        self.renderer = renderer or PDFGenerator(mode=config.render_mode, screenshot=config.screenshot,
                                                 navigation_timeout=config.navigation_timeout)
        self.assembler = DocumentAssembler()
        self.files = FileManager(config.output_dir)
        self.manifest = Manifest(config.output_dir)
        self.errors = create_error_tracker('controller')
        self.state = CrawlState.FETCHING_PAGE
        self._stop_event = threading.Event()

    def stop(self):
        """Ask the crawl to finish after the current post."""
        self._stop_event.set()

    def run(self, progress: Optional[Callable[[object], None]] = None) -> Dict[str, int]:
        """
        Crawl the feed until an empty page, the lower bound, the last page or
        a stop request.

        Raises:
            TransportError, MalformedResponse: A feed page could not be fetched
                or decoded. Pagination cannot resume mid-page, so the run ends.
            EngineUnavailable: The renderer could not be started.
        """
        stats = {"pages": 0, "archived": 0, "skipped": 0, "restricted": 0, "failed": 0}
        archived: List[Dict[str, str]] = []
        url: Optional[str] = self.feed.seed_url()

        self.renderer.open()
        try:
            while url and not self._stop_event.is_set():
                self.state = CrawlState.FETCHING_PAGE
                raw = self.feed.fetch_page(url)

                self.state = CrawlState.DECODING_PAGE
                page = decode_feed_page(raw, url)
                stats["pages"] += 1
                if progress:
                    progress({"type": "page", "index": stats["pages"], "url": url, "items": len(page.items)})

                if page.is_terminal:
                    self.logger.info("No more items. Finish")
                    break

                self.state = CrawlState.PROCESSING_ITEMS
                self.logger.debug(f"Page {stats['pages']} posts: {', '.join(decoded_ids(page))}")
                if self._process_items(page, stats, archived, progress):
                    break

                url = page.next_url
                if not url:
                    self.logger.info("No next page. Finish")
        finally:
            self.state = CrawlState.DONE
            self.renderer.close()
            if archived:
                self.files.generate_index_file(archived)

        if progress:
            progress({"type": "counters", "stats": stats})
        return stats

    def _process_items(self, page: FeedPage, stats: Dict[str, int],
                       archived: List[Dict[str, str]], progress) -> bool:
        """Process a page's posts in order. Returns True when the crawl is over."""
        for post in page.items:
            if self._stop_event.is_set():
                self.logger.info("Stop requested. Finish")
                return True

            post_id = post.numeric_id
            if self.boundary.is_above_upper(post_id):
                self.logger.info(f"Skipping newer post. ID {post.id}")
                stats["skipped"] += 1
                self._record(post, "skipped")
                continue
            if self.boundary.is_past_lower(post_id):
                self.logger.info(f"Reach end ID {post.id}. Finish")
                return True
            if post.is_restricted:
                self.logger.info(f"Skipping empty body. ID {post.id}")
                stats["restricted"] += 1
                self._record(post, "restricted")
                continue

            if progress:
                progress({"type": "post", "post_id": post.id, "stage": "processing", "title": post.title})
            entry = self.process_post(post)
            if entry is None:
                stats["failed"] += 1
                if progress:
                    progress({"type": "post", "post_id": post.id, "stage": "failed"})
                continue
            stats["archived"] += 1
            archived.append(entry)
            if progress:
                progress({"type": "post", "post_id": post.id, "stage": "completed", "pdf_path": entry["pdf_path"]})
        return False

    def process_post(self, post: Post) -> Optional[Dict[str, str]]:
        """
        Normalize, download, assemble and render one post.

        Post-level failures are logged and recorded; they never stop the crawl.

        Returns:
            Index entry for the archived post, or None if the post failed
        """
        started = time.time()
        media_failed: List[str] = []
        try:
            segments = normalize_body(post.id, post.body)
            post_dir = self.files.create_post_dir(post)

            report = self.downloader.download_all(post.body.image_map, post_dir, origin=self.feed.origin)
            for media_id, reason in report.failed.items():
                media_failed.append(media_id)
                self.errors.log_warning(f"Media {media_id} not downloaded: {reason}", stage="media", post_id=post.id)

            html = self.assembler.assemble(post, segments)
            live = self.config.render_mode == "url"
            html_path = self.files.save_html(html, self.files.document_path(post, live_url=live), post.id)

            if live:
                target = RenderTarget(url=self.feed.post_url(post.id))
            else:
                target = RenderTarget(document_path=html_path)
            result = self.renderer.render(post.id, target, post_dir, self.files.basename(post))
        except PostError as e:
            self.errors.log_error(e, stage=e.stage, post_id=post.id)
            self._record(post, "failed", stage=e.stage, error=str(e), media_failed=media_failed, started_at=started)
            return None

        self._record(post, "archived", html_path=html_path, pdf_path=result.pdf_path,
                     image_path=result.image_path, media_failed=media_failed, started_at=started)
        return {
            "post_id": post.id,
            "title": post.title,
            "html_path": html_path,
            "pdf_path": result.pdf_path,
        }

    def _record(self, post: Post, status: str, started_at: float = 0.0, **fields):
        now = time.time()
        self.manifest.append(ManifestRecord(post_id=post.id, title=post.title, status=status,
                                            started_at=started_at or now, finished_at=now, **fields))
