"""Structural business signals inferred from a site's links and text.

Each catalog rule belongs to one family and fires at most once. Rules are
evaluated in catalog order, so the output order is fixed regardless of where
on the page the evidence appeared.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from src.enrichment.models import ExtractedContent, Signal


@dataclass(frozen=True)
class SignalRule:
    """One catalog entry: any path segment, text pattern or host marker triggers ``text``."""

    family: str
    text: str
    path_segments: frozenset[str] = frozenset()
    text_pattern: re.Pattern[str] | None = None
    hosts: frozenset[str] = frozenset()


SIGNAL_CATALOG: tuple[SignalRule, ...] = (
    SignalRule(
        family="hiring",
        text="Actively hiring (careers page found)",
        path_segments=frozenset({"careers", "jobs", "join-us", "work-with-us"}),
    ),
    SignalRule(
        family="content",
        text="Invests in content marketing (blog or newsroom)",
        path_segments=frozenset({"blog", "news", "newsroom"}),
    ),
    SignalRule(
        family="product",
        text="Active product development (public changelog or release notes)",
        path_segments=frozenset({"changelog", "releases", "release-notes"}),
    ),
    SignalRule(
        family="developer",
        text="Developer-focused with technical depth (docs or API portal)",
        path_segments=frozenset({"docs", "api", "developers", "developer", "documentation"}),
    ),
    SignalRule(
        family="security",
        text="Enterprise-ready (security and compliance posture published)",
        path_segments=frozenset({"security", "trust", "compliance"}),
        text_pattern=re.compile(
            r"\bSOC[\s-]?2\b|\bISO[\s/-]?(?:IEC[\s-]?)?27001\b|\bHIPAA\b|\bGDPR\b|\btrust center\b",
            re.IGNORECASE,
        ),
    ),
    SignalRule(
        family="integrations",
        text="Ecosystem connectivity (integrations directory)",
        path_segments=frozenset({"integrations", "marketplace"}),
    ),
    SignalRule(
        family="mobile",
        text="Multi-platform strategy (mobile apps available)",
        text_pattern=re.compile(
            r"\bdownload (?:the |our )?(?:mobile )?app\b|\bapp store\b|\bgoogle play\b",
            re.IGNORECASE,
        ),
        hosts=frozenset({"apps.apple.com", "itunes.apple.com", "play.google.com"}),
    ),
)


def _matching_path(rule: SignalRule, links: tuple[str, ...]) -> str | None:
    if not rule.path_segments:
        return None
    for path in links:
        segments = path.lower().strip("/").split("/")
        if any(segment in rule.path_segments for segment in segments):
            return path
    return None


def _evaluate(rule: SignalRule, content: ExtractedContent) -> Signal | None:
    path = _matching_path(rule, content.internal_links)
    if path is not None:
        return Signal(family=rule.family, text=rule.text, evidence=path)

    if rule.hosts and any(host in rule.hosts for host in content.external_hosts):
        return Signal(family=rule.family, text=rule.text)

    if rule.text_pattern is not None:
        haystack = " ".join((content.title, content.meta_description, content.body_text))
        if rule.text_pattern.search(haystack):
            return Signal(family=rule.family, text=rule.text)

    return None


def detect_signals(
    content: ExtractedContent,
    catalog: tuple[SignalRule, ...] = SIGNAL_CATALOG,
) -> list[Signal]:
    """Return the signals *content* supports, in catalog order."""
    signals: list[Signal] = []
    for rule in catalog:
        signal = _evaluate(rule, content)
        if signal is not None:
            signals.append(signal)
    return signals
