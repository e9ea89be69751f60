"""URL trust classification for taintgate.

Decides whether the resource an action touches is trusted, based on
glob patterns over domain names, and extracts that resource from
arbitrary tool input payloads.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional
from urllib.parse import urlsplit

from ..patterns import URL_FIELDS, URL_TEXT_FIELDS
from .glob import DomainPattern

logger = logging.getLogger(__name__)

EMBEDDED_URL = re.compile(r"https?://[^\s\"'`<>]+", re.IGNORECASE)
SCHEME_PREFIX = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
VALID_HOST = re.compile(r"^[a-z0-9_:\-]+(?:\.[a-z0-9_:\-]+)*\.?$")


class ResourceStatus(str, Enum):
    """Outcome of looking for a resource in a tool payload."""

    FOUND = "found"  # URL present and host extracted
    MALFORMED = "malformed"  # URL present but no usable host
    ABSENT = "absent"  # Nothing URL-like in the payload


@dataclass(frozen=True)
class ResourceLookup:
    """Result of extracting a resource identifier from a payload."""

    status: ResourceStatus
    url: Optional[str] = None
    domain: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status != ResourceStatus.ABSENT


@dataclass(frozen=True)
class TrustVerdict:
    """Trust decision for a single domain."""

    trusted: bool
    matched_pattern: Optional[str] = None


@dataclass(frozen=True)
class UrlCheckResult:
    """Trust decision for the resource touched by a tool call."""

    url_found: bool
    trusted: bool
    url: Optional[str] = None
    domain: Optional[str] = None
    matched_pattern: Optional[str] = None
    malformed: bool = False


def extract_domain(url: str) -> Optional[str]:
    """Extract the lower-cased host name from a URL or bare host string.

    Args:
        url: Full URL ("https://github.com/x") or bare host ("github.com/x")

    Returns:
        Host name without port, or None if no valid host can be extracted
    """
    if not isinstance(url, str):
        return None

    candidate = url.strip()
    if not candidate:
        return None
    if not SCHEME_PREFIX.match(candidate):
        candidate = f"https://{candidate}"

    try:
        host = urlsplit(candidate).hostname
    except ValueError:
        return None

    if not host or not VALID_HOST.match(host):
        return None
    return host.lower()


def extract_url_from_payload(payload: dict[str, Any]) -> Optional[str]:
    """Find a URL in tool input, preferring direct URL fields over free text."""
    for field in URL_FIELDS:
        value = payload.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()

    # e.g. "curl https://example.com"
    for field in URL_TEXT_FIELDS:
        value = payload.get(field)
        if isinstance(value, str):
            match = EMBEDDED_URL.search(value)
            if match:
                return match.group(0)

    return None


def extract_resource(payload: dict[str, Any]) -> ResourceLookup:
    """Extract the resource identifier an action touches.

    Args:
        payload: Tool input mapping

    Returns:
        ResourceLookup that is FOUND, MALFORMED or ABSENT
    """
    if not isinstance(payload, dict):
        return ResourceLookup(status=ResourceStatus.ABSENT)

    url = extract_url_from_payload(payload)
    if url is None:
        return ResourceLookup(status=ResourceStatus.ABSENT)

    domain = extract_domain(url)
    if domain is None:
        return ResourceLookup(status=ResourceStatus.MALFORMED, url=url)

    return ResourceLookup(status=ResourceStatus.FOUND, url=url, domain=domain)


class TrustClassifier:
    """Classifies domains as trusted or untrusted using glob patterns."""

    def __init__(self, patterns: Iterable[str]):
        """Initialize the classifier.

        Args:
            patterns: Trusted domain glob patterns, compiled once here.
        """
        self._patterns: tuple[DomainPattern, ...] = tuple(
            DomainPattern.compile(p) for p in patterns if p and p.strip()
        )

    @property
    def patterns(self) -> list[str]:
        return [p.pattern for p in self._patterns]

    def classify(self, domain: str) -> TrustVerdict:
        """Classify a bare domain name.

        Args:
            domain: Host name already extracted from a URL

        Returns:
            TrustVerdict with the first matching pattern, if any
        """
        for pattern in self._patterns:
            if pattern.matches(domain):
                return TrustVerdict(trusted=True, matched_pattern=pattern.pattern)
        return TrustVerdict(trusted=False)

    def is_domain_trusted(self, domain: str) -> bool:
        return self.classify(domain).trusted

    def check_url(self, url: str) -> UrlCheckResult:
        """Check the trust of a URL the caller says was accessed.

        Blank or unparseable input is untrusted and flagged malformed,
        never treated as "no resource".

        Args:
            url: Full URL or bare host

        Returns:
            UrlCheckResult with url_found=True
        """
        domain = extract_domain(url)
        if domain is None:
            logger.warning(f"Could not extract domain from URL: {url!r}")
            return UrlCheckResult(url_found=True, trusted=False, url=url, malformed=True)

        verdict = self.classify(domain)
        if verdict.trusted:
            logger.debug(f"Domain {domain} matches trusted pattern: {verdict.matched_pattern}")
        else:
            logger.info(f"Domain {domain} is NOT trusted")

        return UrlCheckResult(
            url_found=True,
            trusted=verdict.trusted,
            url=url,
            domain=domain,
            matched_pattern=verdict.matched_pattern,
        )

    def check(self, payload: dict[str, Any]) -> UrlCheckResult:
        """Check the trust of whatever resource a tool payload touches.

        No URL means no verdict; an unparseable URL is untrusted.
        """
        lookup = extract_resource(payload)
        if lookup.status == ResourceStatus.ABSENT:
            return UrlCheckResult(url_found=False, trusted=True)
        return self.check_url(lookup.url)
