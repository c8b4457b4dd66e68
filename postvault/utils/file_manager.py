"""
File Management Utilities

Lays out the archive on disk: one directory per post under the output root,
holding the assembled document, the downloaded media and the rendered output,
plus a run index at the root linking every archived post.
"""

import os
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Optional

from postvault.core.errors import FilesystemError
from postvault.core.models import Post
from postvault.utils.validators import output_basename


class FileManager:
    """
    Manages file organization and naming for archived posts.

    Directories are keyed by post id, so no two posts ever write to the same
    place.
    """

    def __init__(self, base_output_dir: str = "out"):
        """
        Initialize the file manager.

        Args:
            base_output_dir: Base directory for all output files
        """
        self.base_output_dir = Path(base_output_dir)
        self.logger = logging.getLogger(__name__)
        self.base_output_dir.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Output directory: {self.base_output_dir.absolute()}")

    def post_dir(self, post: Post) -> str:
        return str(self.base_output_dir / post.id)

    def create_post_dir(self, post: Post) -> str:
        """
        Create the output directory of a post.

        Raises:
            FilesystemError: If the directory cannot be created.
        """
        path = self.post_dir(post)
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise FilesystemError(post.id, f"Cannot create output directory {path}: {e}") from e
        return path

    def basename(self, post: Post) -> str:
        return output_basename(post.id, post.title)

    def document_path(self, post: Post, live_url: bool = False) -> str:
        """
        Path of the assembled document.

        The local render mode reads `index.html`; when the live page is
        rendered instead, the document is kept alongside as `{id}-{title}.html`.
        """
        name = f"{self.basename(post)}.html" if live_url else "index.html"
        return os.path.join(self.post_dir(post), name)

    def save_html(self, html_content: str, path: str, post_id: str) -> str:
        """
        Save an HTML document.

        Raises:
            FilesystemError: If the file cannot be written.
        """
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(html_content)
        except OSError as e:
            raise FilesystemError(post_id, f"Failed to save HTML {path}: {e}") from e

        file_size = os.path.getsize(path)
        self.logger.info(f"Saved HTML ({file_size} bytes): {os.path.basename(path)}")
        return path

    def generate_index_file(self, posts_archived: List[Dict[str, str]], output_path: Optional[str] = None) -> str:
        """
        Generate an index HTML file listing every post archived in this run.

        Args:
            posts_archived: Dicts with 'post_id', 'title', 'html_path', 'pdf_path'
            output_path: Path for the index file (optional)

        Returns:
            Path to the generated index file, or "" when it could not be written
        """
        if output_path is None:
            output_path = self.base_output_dir / "index.html"

        try:
            html_content = self._build_index_html(posts_archived)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(html_content)
            self.logger.info(f"Generated index file: {output_path}")
            return str(output_path)
        except OSError as e:
            self.logger.error(f"Failed to generate index file: {e}")
            return ""

    def _build_index_html(self, posts_archived: List[Dict[str, str]]) -> str:
        """Build the HTML content for the index file."""
        html = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Postvault - Archived Posts</title>
    <style>
        body {{ font-family: Arial, sans-serif; max-width: 1000px; margin: 0 auto; padding: 20px; }}
        .post-entry {{ border: 1px solid #ddd; margin: 10px 0; padding: 12px; border-radius: 5px; }}
        .post-title {{ font-weight: bold; color: #2c5aa0; }}
        .file-links a {{ margin-right: 15px; color: #2c5aa0; }}
    </style>
</head>
<body>
    <h1>Archived Posts</h1>
    <p><strong>Total Posts:</strong> {total_posts} &middot; <strong>Generated:</strong> {generation_time}</p>
    {post_entries}
</body>
</html>"""

        post_entries = ""
        for info in posts_archived:
            html_path = info.get('html_path', '')
            pdf_path = info.get('pdf_path', '')
            html_link = Path(os.path.relpath(html_path, self.base_output_dir)).as_posix() if html_path else ""
            pdf_link = Path(os.path.relpath(pdf_path, self.base_output_dir)).as_posix() if pdf_path else ""
            post_entries += f"""
    <div class="post-entry">
        <div class="post-title">{self._escape_html(info.get('post_id', ''))}: {self._escape_html(info.get('title', ''))}</div>
        <div class="file-links">
            {f'<a href="{self._escape_html(html_link)}">HTML</a>' if html_link else ''}
            {f'<a href="{self._escape_html(pdf_link)}">PDF</a>' if pdf_link else ''}
        </div>
    </div>"""

        return html.format(
            total_posts=len(posts_archived),
            generation_time=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            post_entries=post_entries,
        )

    def _escape_html(self, text: str) -> str:
        """Escape HTML characters."""
        if not isinstance(text, str):
            text = str(text)
        return (text.replace('&', '&amp;')
                   .replace('<', '&lt;')
                   .replace('>', '&gt;')
                   .replace('"', '&quot;')
                   .replace("'", '&#x27;'))
