"""Image search and rehosting models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ImageCandidate:
    """Photo returned by the search API with its keyword relevance."""

    url: str
    relevant: bool
    alt_description: str | None = None


@dataclass(frozen=True)
class DownloadedImage:
    """Raw image payload fetched from a remote URL."""

    content: bytes
    content_type: str | None

    @property
    def size(self) -> int:
        return len(self.content)
