"""Taint core for taintgate.

This package contains:
- Domain glob compilation
- URL trust classification
- Taint level tracking
- Tiered shell command restrictions
"""

from .glob import DomainPattern, glob_to_regex, matches_glob_pattern
from .shell import BlockCategory, ShellDecision, ShellRestrictionEngine, extract_base_command
from .tracker import TaintEvent, TaintEventType, TaintState, TaintTracker, resolve_tier
from .url_trust import (
    ResourceLookup,
    ResourceStatus,
    TrustClassifier,
    TrustVerdict,
    UrlCheckResult,
    extract_domain,
    extract_resource,
    extract_url_from_payload,
)

__all__ = [
    "DomainPattern",
    "glob_to_regex",
    "matches_glob_pattern",
    "BlockCategory",
    "ShellDecision",
    "ShellRestrictionEngine",
    "extract_base_command",
    "TaintEvent",
    "TaintEventType",
    "TaintState",
    "TaintTracker",
    "resolve_tier",
    "ResourceLookup",
    "ResourceStatus",
    "TrustClassifier",
    "TrustVerdict",
    "UrlCheckResult",
    "extract_domain",
    "extract_resource",
    "extract_url_from_payload",
]
