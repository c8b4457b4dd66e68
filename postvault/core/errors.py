"""
Error taxonomy for the archival pipeline.

Page-level errors (TransportError, MalformedResponse) abort the whole run.
Post-level errors (MissingMediaReference, RenderFailure, FilesystemError) fail
only the post being processed; the controller logs them and moves on.
"""

from typing import Optional


class PostvaultError(Exception):
    """Base class for all Postvault errors."""


class ConfigError(PostvaultError):
    """Invalid or missing run configuration."""


class TransportError(PostvaultError):
    """A feed page or media request could not be completed."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Request to {url} failed: {reason}")


class MalformedResponse(PostvaultError):
    """The feed response is not JSON or matches neither post body schema."""

    def __init__(self, reason: str, url: Optional[str] = None):
        self.reason = reason
        self.url = url
        msg = f"Malformed feed response: {reason}"
        if url:
            msg += f" ({url})"
        super().__init__(msg)


class PostError(PostvaultError):
    """Base class for errors that fail a single post."""

    stage = "post"

    def __init__(self, post_id: str, message: str):
        self.post_id = post_id
        super().__init__(message)


class MissingMediaReference(PostError):
    """A block references a media id absent from the post's image map."""

    stage = "normalize"

    def __init__(self, post_id: str, media_id: str):
        self.media_id = media_id
        super().__init__(post_id, f"Post {post_id} references unknown media id {media_id!r}")


class RenderFailure(PostError):
    """The rendering engine did not produce output for a post."""

    stage = "render"


class FilesystemError(PostError):
    """A post's output directory or file could not be written."""

    stage = "filesystem"


class EngineUnavailable(PostvaultError):
    """The rendering engine could not be started for the run."""

    def __init__(self, engine: str, reason: str):
        self.engine = engine
        self.reason = reason
        super().__init__(f"Rendering engine {engine} could not start: {reason}")
