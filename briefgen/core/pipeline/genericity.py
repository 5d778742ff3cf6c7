"""
Genericity checks for synthesized briefs.

Pure functions that flag template-like output: boilerplate headlines,
placeholder section headings and sub-points that say nothing specific
about the topic. The synthesizer uses them both to reject model output
and to keep its own deterministic fallbacks honest.
"""

import re
from typing import Any, Dict, Iterable, List

# Section headings that carry no topic information.
GENERIC_H2S = frozenset({
    "introduction",
    "main content",
    "conclusion",
    "overview",
    "summary",
    "final thoughts",
})

# Headings the analyzer treats as a sign the model invented structure.
ANALYZER_GENERIC_H2S = frozenset({
    "introduction",
    "main content",
    "conclusion",
    "overview",
})

# Template phrases that show up when the model ignores the source data.
GENERIC_PHRASES = frozenset({
    "fluff content",
    "outdated information",
    "overly technical jargon",
    "introduction",
    "main content",
    "conclusion",
    "main benefits",
    "how-to instructions",
    "related topic",
    "authority sources",
})

_GENERIC_HEADLINE_PATTERNS = [
    re.compile(r":\s*(a|the|your)\s+(complete|ultimate|comprehensive|definitive)\s+guide\b", re.IGNORECASE),
    re.compile(r"^\s*(the\s+|a\s+|your\s+)?(ultimate|complete|comprehensive|definitive)\s+guide\s+to\b", re.IGNORECASE),
    re.compile(r"\beverything\s+you\s+need\s+to\s+know\s+about\b", re.IGNORECASE),
]

_GENERIC_H3_PATTERNS = [
    re.compile(r"^understanding\b", re.IGNORECASE),
    re.compile(r"^benefits\s+of\b", re.IGNORECASE),
    re.compile(r"^implementation\s+strategies$", re.IGNORECASE),
    re.compile(r"^introduction\s+to\b", re.IGNORECASE),
    re.compile(r"^overview\s+of\b", re.IGNORECASE),
    re.compile(r"\bkey\s+considerations\b", re.IGNORECASE),
    re.compile(r"^(sub)?section\s*\d+(\.\d+)*$", re.IGNORECASE),
    re.compile(r"^(point|item|step)\s*\d+$", re.IGNORECASE),
]


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", (text or "").strip().lower()).strip(" .:!?")


def is_generic_headline(title: str, topic: str = "") -> bool:
    """True for boilerplate headlines such as "X: A Complete Guide"."""
    if not title or not title.strip():
        return True
    if any(pattern.search(title) for pattern in _GENERIC_HEADLINE_PATTERNS):
        return True
    # A headline that only restates the topic says nothing
    return bool(topic) and _normalize(title) == _normalize(topic)


def is_generic_h2(heading: str) -> bool:
    return _normalize(heading) in GENERIC_H2S


def is_generic_h3(subpoint: str) -> bool:
    normalized = _normalize(subpoint)
    if not normalized:
        return True
    if normalized in GENERIC_PHRASES:
        return True
    return any(pattern.search(normalized) for pattern in _GENERIC_H3_PATTERNS)


def has_generic_phrase(items: Iterable[str]) -> bool:
    """True if any list item is exactly one of the template phrases."""
    return any(_normalize(item) in GENERIC_PHRASES for item in items if isinstance(item, str))


def detect_genericity(candidate: Dict[str, Any], topic: str) -> List[str]:
    """
    List the generic patterns found in a candidate brief.

    Args:
        candidate: Brief in wire shape (camelCase section keys)
        topic: Brief topic

    Returns:
        Human-readable issues; empty when the candidate is specific enough
    """
    issues = []

    seo = candidate.get("seoData") or {}
    structure = candidate.get("structure") or {}

    h1 = structure.get("h1") or ""
    if is_generic_headline(h1, topic):
        issues.append(f'Generic headline: "{h1}"')

    seo_title = seo.get("title") or ""
    if seo_title and seo_title != h1 and is_generic_headline(seo_title, topic):
        issues.append(f'Generic SEO title: "{seo_title}"')

    for section in structure.get("sections") or []:
        if not isinstance(section, dict):
            continue
        h2 = section.get("h2") or ""
        if is_generic_h2(h2):
            issues.append(f'Generic section heading: "{h2}"')
        for h3 in section.get("h3s") or []:
            if isinstance(h3, str) and is_generic_h3(h3):
                issues.append(f'Generic sub-point under "{h2}": "{h3}"')

    instructions = candidate.get("writingInstructions") or {}
    requirements = candidate.get("contentRequirements") or {}
    for items in (
        instructions.get("avoid") or [],
        instructions.get("keyPoints") or [],
        requirements.get("mustInclude") or [],
    ):
        if has_generic_phrase(items):
            issues.append("Template phrases in writing instructions or requirements")
            break

    return issues
