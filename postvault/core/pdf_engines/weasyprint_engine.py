"""
WeasyPrint PDF Engine

Renders the locally assembled post document to PDF. Resources are constrained
to the post's own directory via a custom url_fetcher that denies http(s)
requests, so the PDF only ever shows media the archive actually holds.
"""

import logging
import os
from typing import Optional
from urllib.parse import unquote, urlparse

try:
    from weasyprint import CSS, HTML
except Exception:  # pragma: no cover - handled at runtime
    CSS = HTML = None


# Portrait with one inch margins
PAGE_CSS = "@page { size: A4 portrait; margin: 1in; }"


class WeasyPrintEngine:
    name = "weasyprint"
    supports_urls = False
    supports_screenshots = False

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def _local_only_fetcher(self, allowed_base: Optional[str] = None):
        """
        Return a url_fetcher for WeasyPrint that only allows local file paths
        under allowed_base.
        """

        def fetch(url):
            if url.startswith('http://') or url.startswith('https://'):
                raise RuntimeError(f"Remote fetch blocked: {url}")
            path = unquote(urlparse(url).path) if url.startswith('file://') else url
            abs_path = os.path.abspath(path)
            if allowed_base:
                base = os.path.abspath(allowed_base)
                if os.path.commonpath([abs_path, base]) != base:
                    raise RuntimeError(f"Access outside allowed base blocked: {url}")
            try:
                with open(abs_path, 'rb') as f:
                    data = f.read()
            except OSError as e:
                raise RuntimeError(f"Failed to read local resource: {url} ({e})")
            return {
                'string': data,
                'mime_type': None,  # Let WeasyPrint infer
                'encoding': 'binary',
            }

        return fetch

    def available(self) -> bool:
        """Return True if WeasyPrint is importable."""
        return HTML is not None

    def open(self):
        """No long-lived state; present for engine lifecycle symmetry."""
        return None

    def close(self):
        return None

    def generate(self, document_path: str, output_path: str, title: Optional[str] = None) -> bool:
        """
        Generate a PDF from a local HTML document.

        Args:
            document_path: Assembled HTML file; relative image paths resolve
                against its directory
            output_path: Target PDF path
            title: Document title written into the PDF metadata
        """
        if HTML is None:
            self.logger.error("WeasyPrint is not installed. Please install 'weasyprint'.")
            return False

        try:
            base_dir = os.path.dirname(os.path.abspath(document_path))
            url_fetcher = self._local_only_fetcher(allowed_base=base_dir)
            html = HTML(filename=document_path, url_fetcher=url_fetcher)
            document = html.render(stylesheets=[CSS(string=PAGE_CSS)])
            if title:
                document.metadata.title = title
            document.write_pdf(output_path)

            return os.path.exists(output_path) and os.path.getsize(output_path) > 0
        except Exception as e:
            self.logger.error(f"WeasyPrint generation failed: {e}")
            return False
