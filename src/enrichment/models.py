"""Internal data types passed between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FetchResult:
    """A successful GET of the seed (or a supplementary) page."""

    final_url: str
    status_code: int
    html: str
    content_type: str = ""


@dataclass(frozen=True)
class ExtractedContent:
    """Denoised text and link inventory of one or more pages."""

    title: str
    meta_description: str
    body_text: str
    internal_links: tuple[str, ...] = ()
    external_hosts: tuple[str, ...] = ()


@dataclass(frozen=True)
class Signal:
    """One detected trait. ``evidence`` is the internal path that triggered it, if any."""

    family: str
    text: str
    evidence: str | None = None
