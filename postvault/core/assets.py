"""
Media download for a single post.

Every entry of a post's image map is fetched, whether or not a block refers
to it, and streamed to `{post_dir}/{media_id}.{extension}`. Downloads for one
post run concurrently with one worker per asset. A failed download is logged
and recorded in the report but never fails the post; files that did arrive
stay on disk.
"""

from __future__ import annotations

import os
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Optional

import requests

from .models import MediaAsset


CHUNK_SIZE = 64 * 1024


@dataclass
class MediaReport:
    saved: Dict[str, str] = field(default_factory=dict)   # media id -> local path
    failed: Dict[str, str] = field(default_factory=dict)  # media id -> reason

    @property
    def complete(self) -> bool:
        return not self.failed


class MediaDownloader:
    def __init__(self, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.logger = logging.getLogger(__name__)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'Postvault/1.0 (MediaDownloader)'
        })

    def local_path(self, post_dir: str, media_id: str, asset: MediaAsset) -> str:
        return os.path.join(post_dir, f"{media_id}.{asset.extension}")

    def download_all(self, image_map: Dict[str, MediaAsset], post_dir: str,
                     origin: Optional[str] = None) -> MediaReport:
        """
        Download every asset of a post concurrently and wait for all of them.

        Args:
            image_map: media id -> asset, straight from the post body
            post_dir: Existing output directory of the post
            origin: Optional Origin header (the CDN accepts requests without it)

        Returns:
            MediaReport of which ids were saved and which failed
        """
        report = MediaReport()
        if not image_map:
            return report

        with ThreadPoolExecutor(max_workers=len(image_map)) as ex:
            futures = {
                media_id: ex.submit(self._download_one, media_id, asset, post_dir, origin)
                for media_id, asset in image_map.items()
            }
            for media_id, fut in futures.items():
                try:
                    report.saved[media_id] = fut.result()
                except (requests.RequestException, OSError) as e:
                    self.logger.warning(f"Failed to download media {media_id}: {image_map[media_id].original_url} ({e})")
                    report.failed[media_id] = str(e)

        self.logger.info(f"Downloaded {len(report.saved)}/{len(image_map)} media files into {post_dir}")
        return report

    def _download_one(self, media_id: str, asset: MediaAsset, post_dir: str, origin: Optional[str]) -> str:
        path = self.local_path(post_dir, media_id, asset)
        headers = {'Origin': origin} if origin else None
        with self.session.get(asset.original_url, headers=headers, timeout=self.timeout, stream=True) as resp:
            resp.raise_for_status()
            with open(path, 'wb') as f:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
        self.logger.debug(f"Saved media {media_id} -> {path}")
        return path

    def close(self):
        self.session.close()
