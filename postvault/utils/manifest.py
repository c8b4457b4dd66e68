"""
Run manifest: an append-only JSON Lines log with one record per post outcome.

The manifest is a record of what happened, including which media downloads
failed. It is never read back to decide what to fetch; `iter_records` and
`latest_status` are the read API for inspecting a finished run.
"""

import json
import os
from dataclasses import dataclass, asdict, field
from typing import Optional, Dict, Any, Iterable, List


DEFAULT_MANIFEST_NAME = "manifest.jsonl"


@dataclass
class ManifestRecord:
    post_id: str
    title: str
    status: str  # archived|failed|skipped|restricted
    stage: Optional[str] = None
    error: Optional[str] = None
    html_path: Optional[str] = None
    pdf_path: Optional[str] = None
    image_path: Optional[str] = None
    media_failed: List[str] = field(default_factory=list)
    started_at: float = 0.0
    finished_at: float = 0.0


class Manifest:
    def __init__(self, output_dir: str):
        self.output_dir = output_dir
        os.makedirs(self.output_dir, exist_ok=True)
        self.path = os.path.join(self.output_dir, DEFAULT_MANIFEST_NAME)

    def append(self, rec: ManifestRecord) -> None:
        with open(self.path, 'a', encoding='utf-8') as f:
            f.write(json.dumps(asdict(rec), ensure_ascii=False) + "\n")

    def iter_records(self) -> Iterable[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return
        with open(self.path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    yield json.loads(line)
                except ValueError:
                    continue

    def latest_status(self) -> Dict[str, str]:
        """Latest status per post id."""
        latest = {}
        for rec in self.iter_records():
            if rec.get('post_id'):
                latest[rec['post_id']] = rec.get('status')
        return latest
