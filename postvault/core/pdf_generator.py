"""
PDF Generation Module (render dispatch)

Hands an assembled post to the rendering engine and checks that output landed
on disk. Local documents go through WeasyPrint, with a minimal ReportLab
rendering as fallback; live post URLs go through headless Chromium.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional
from xml.sax.saxutils import escape

from bs4 import BeautifulSoup

from .errors import EngineUnavailable, RenderFailure
from .pdf_engines.playwright_engine import PlaywrightEngine
from .pdf_engines.weasyprint_engine import WeasyPrintEngine


@dataclass
class RenderTarget:
    """What to render: a local document path or a live URL, never both."""
    document_path: Optional[str] = None
    url: Optional[str] = None

    def __post_init__(self):
        if bool(self.document_path) == bool(self.url):
            raise ValueError("RenderTarget needs exactly one of document_path or url")

    @property
    def location(self) -> str:
        return self.url or self.document_path


@dataclass
class RenderResult:
    pdf_path: str
    image_path: Optional[str] = None


class PDFGenerator:
    """Dispatches render requests to the engine chosen for the run."""

    def __init__(self, mode: str = "local", screenshot: bool = False, engine=None,
                 navigation_timeout: float = 30.0):
        """
        Args:
            mode: 'local' renders the assembled file, 'url' the live post page
            screenshot: Also capture a JPEG (needs a screenshot-capable engine)
            engine: Explicit engine instance; chosen from mode when omitted
            navigation_timeout: Page load deadline for the browser engine
        """
        self.logger = logging.getLogger(__name__)
        self.mode = mode
        self.screenshot = screenshot
        if engine is None:
            if mode == "url" or screenshot:
                engine = PlaywrightEngine(navigation_timeout=navigation_timeout)
            else:
                engine = WeasyPrintEngine()
        self.engine = engine
        if screenshot and not getattr(self.engine, 'supports_screenshots', False):
            self.logger.warning(f"Engine {self.engine.name} cannot take screenshots; only PDFs will be written")
            self.screenshot = False

    def open(self):
        """
        Start the engine once for the whole run.

        Raises:
            EngineUnavailable: The engine is missing or failed to launch.
        """
        try:
            self.engine.open()
        except EngineUnavailable:
            raise
        except Exception as e:
            raise EngineUnavailable(self.engine.name, str(e)) from e

    def close(self):
        self.engine.close()

    def output_paths(self, post_dir: str, base_name: str) -> RenderResult:
        pdf_path = os.path.join(post_dir, f"{base_name}.pdf")
        image_path = os.path.join(post_dir, f"{base_name}.jpg") if self.screenshot else None
        return RenderResult(pdf_path=pdf_path, image_path=image_path)

    def render(self, post_id: str, target: RenderTarget, post_dir: str, base_name: str) -> RenderResult:
        """
        Render one post and persist the output.

        Raises:
            RenderFailure: The engine raised or produced no file. Fatal to
                this post only.
        """
        result = self.output_paths(post_dir, base_name)
        try:
            ok = self._dispatch(post_id, target, result, title=base_name)
        except RenderFailure:
            raise
        except Exception as e:
            raise RenderFailure(post_id, f"Render of post {post_id} failed: {e}") from e
        if not ok:
            raise RenderFailure(post_id, f"Render of post {post_id} produced no output ({target.location})")
        self.logger.info(f"Output {base_name}")
        return result

    def _dispatch(self, post_id: str, target: RenderTarget, result: RenderResult, title: str) -> bool:
        if target.url:
            if not getattr(self.engine, 'supports_urls', False):
                raise RenderFailure(post_id, f"Engine {self.engine.name} cannot render URLs")
            return self.engine.generate(target.url, result.pdf_path, screenshot_path=result.image_path)

        if isinstance(self.engine, WeasyPrintEngine):
            if self.engine.available() and self.engine.generate(target.document_path, result.pdf_path, title=title):
                return True
            self.logger.error("WeasyPrint failed; attempting ReportLab fallback")
            return self._reportlab_fallback(target.document_path, result.pdf_path, title)

        return self.engine.generate(target.document_path, result.pdf_path, screenshot_path=result.image_path)

    def _reportlab_fallback(self, document_path: str, output_path: str, title: str) -> bool:
        try:
            from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Image
            from reportlab.lib.styles import getSampleStyleSheet
            from reportlab.lib.pagesizes import A4
            from reportlab.lib.units import inch
        except ImportError:
            self.logger.error("WeasyPrint not available and ReportLab fallback missing.")
            return False

        with open(document_path, 'r', encoding='utf-8') as f:
            soup = BeautifulSoup(f.read(), 'lxml')
        base_dir = os.path.dirname(os.path.abspath(document_path))

        styles = getSampleStyleSheet()
        doc = SimpleDocTemplate(output_path, pagesize=A4, title=title,
                                leftMargin=inch, rightMargin=inch, topMargin=inch, bottomMargin=inch)
        story = [Paragraph(escape(title), styles['Title']), Spacer(1, 12)]
        max_width = A4[0] - 2 * inch
        max_height = A4[1] - 2 * inch - 24
        for p in soup.find_all('p'):
            img = p.find('img')
            if img is not None and img.get('src'):
                img_path = os.path.join(base_dir, img['src'])
                if os.path.exists(img_path):
                    flowable = Image(img_path)
                    scale = min(1.0, max_width / flowable.drawWidth, max_height / flowable.drawHeight)
                    if scale < 1.0:
                        flowable.drawWidth *= scale
                        flowable.drawHeight *= scale
                    story.append(flowable)
                    story.append(Spacer(1, 6))
                continue
            txt = p.get_text(" ", strip=True)
            if txt:
                story.append(Paragraph(escape(txt), styles['Normal']))
                story.append(Spacer(1, 6))
        doc.build(story)
        return os.path.exists(output_path) and os.path.getsize(output_path) > 0
