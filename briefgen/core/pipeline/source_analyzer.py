"""
Per-source analysis.

Asks the generative model for the headings, keywords, tone and topics
of one competitor article, then discards anything the model reports
that does not actually appear in the article text.
"""

import logging
import re
from typing import Any, Iterable, List

from ..models.source import SourceAnalysis, SourceHeadings
from ...utils.json_parsing import parse_json_payload
from .content_extractor import count_words
from .genericity import ANALYZER_GENERIC_H2S


logger = logging.getLogger(__name__)

DEFAULT_CONTENT_CHARS = 12000
MAX_LIST_ITEMS = 15

FALLBACK_H2S = ['Introduction', 'Main Content', 'Conclusion']
FALLBACK_KEYWORDS = ['content', 'article', 'blog']
FALLBACK_TOPICS = ['general content']
FALLBACK_ANGLES = ['informative approach']

ANALYSIS_SYSTEM_PROMPT = (
    "You are a content analyst. You extract facts from the article you are given "
    "and never invent headings, keywords or topics that are not in the text."
)

ANALYSIS_PROMPT_TEMPLATE = """Analyze this blog post and extract ONLY what is actually present in the text.

URL: {url}
TITLE: {title}

CONTENT:
{content}

Rules:
1. actualH2Headings and actualH3Headings must be copied from the text. Do not paraphrase.
2. primaryKeywords must be terms that appear in the text.
3. If the article has no clear headings, return empty lists. Do not use placeholders such as "Introduction" or "Conclusion".

Return ONLY a JSON object:
{{
  "actualH2Headings": ["heading copied from the text"],
  "actualH3Headings": ["sub-heading copied from the text"],
  "primaryKeywords": ["keyword from the text"],
  "wordCount": 0,
  "tone": "professional/conversational/technical/casual",
  "style": "how-to/listicle/guide/comparison/opinion",
  "mainTopics": ["topic the article covers"],
  "uniqueInsights": ["angle or insight specific to this article"]
}}"""

_H2_PATTERN = re.compile(r"^\s*##\s+(.+?)\s*#*\s*$", re.MULTILINE)
_H3_PATTERN = re.compile(r"^\s*###\s+(.+?)\s*#*\s*$", re.MULTILINE)


def normalize_for_match(text: str) -> str:
    """Lowercase, replace punctuation with spaces and collapse whitespace."""
    return re.sub(r"\s+", " ", re.sub(r"[^\w\s]", " ", (text or "").lower())).strip()


def ground_items(items: Iterable[Any], content: str) -> List[str]:
    """Keep the distinct string items that occur in ``content`` as whole words."""
    haystack = f" {normalize_for_match(content)} "
    grounded = []
    seen = set()
    for item in items or []:
        if not isinstance(item, str):
            continue
        needle = normalize_for_match(item)
        if not needle or needle in seen:
            continue
        if f" {needle} " in haystack:
            grounded.append(item.strip())
            seen.add(needle)
    return grounded[:MAX_LIST_ITEMS]


def markdown_headings(content: str):
    """Return the ``##`` and ``###`` headings written in the text."""
    return (
        [h.strip() for h in _H2_PATTERN.findall(content)][:MAX_LIST_ITEMS],
        [h.strip() for h in _H3_PATTERN.findall(content)][:MAX_LIST_ITEMS],
    )


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()][:MAX_LIST_ITEMS]


def _has_generic_h2(h2s: List[str]) -> bool:
    return any(h.strip().lower() in ANALYZER_GENERIC_H2S for h in h2s)


class SourceAnalyzer:
    """
    Extracts structure and keywords from one source with the generative model.
    """

    def __init__(self, llm_client, content_chars: int = DEFAULT_CONTENT_CHARS):
        """
        Initialize the analyzer.

        Args:
            llm_client: Client exposing ``generate(prompt, system_prompt=..., json_mode=...)``
            content_chars: Prefix length of the article sent to the model
        """
        self.llm_client = llm_client
        self.content_chars = content_chars

    async def analyze(self, content: str, url: str, title: str) -> SourceAnalysis:
        """
        Analyze one article.

        Never raises; on any failure a fallback analysis built from the
        text alone is returned with ``is_fallback`` set.
        """
        try:
            return await self._analyze_with_model(content, url, title)
        except Exception as e:
            logger.warning(f"Analysis failed for {url}, using fallback: {str(e)}")
            return self.fallback_analysis(content, url)

    async def _analyze_with_model(self, content: str, url: str, title: str) -> SourceAnalysis:
        prompt = ANALYSIS_PROMPT_TEMPLATE.format(
            url=url,
            title=title,
            content=content[:self.content_chars]
        )

        response = await self.llm_client.generate(
            prompt,
            system_prompt=ANALYSIS_SYSTEM_PROMPT,
            temperature=0.2,
            json_mode=True
        )
        data = parse_json_payload(response.content, expect=dict)

        reported_h2s = _string_list(data.get('actualH2Headings'))
        h2s = ground_items(reported_h2s, content)
        h3s = ground_items(data.get('actualH3Headings'), content)

        if len(h2s) < len(reported_h2s):
            logger.info(f"Dropped {len(reported_h2s) - len(h2s)} headings not present in {url}")

        if not h2s:
            h2s, text_h3s = markdown_headings(content)
            h3s = h3s or text_h3s

        analysis = SourceAnalysis(
            source_url=url,
            primary_keywords=ground_items(data.get('primaryKeywords'), content),
            headings=SourceHeadings(h2s=h2s, h3s=h3s),
            word_count=count_words(content),
            tone=str(data.get('tone') or 'professional'),
            style=str(data.get('style') or 'article'),
            key_topics=_string_list(data.get('mainTopics')),
            unique_angles=_string_list(data.get('uniqueInsights')),
            is_generic_flag=_has_generic_h2(h2s)
        )

        if analysis.is_generic_flag:
            logger.warning(f"Generic headings detected for {url}")

        logger.info(
            f"Analyzed {url}: {len(h2s)} H2s, {len(h3s)} H3s, "
            f"{len(analysis.primary_keywords)} keywords"
        )
        return analysis

    def fallback_analysis(self, content: str, url: str) -> SourceAnalysis:
        """Analysis built without the model from the article's markdown headings."""
        h2s, h3s = markdown_headings(content or '')
        generic = not h2s
        if generic:
            h2s = list(FALLBACK_H2S)

        return SourceAnalysis(
            source_url=url,
            primary_keywords=list(FALLBACK_KEYWORDS),
            headings=SourceHeadings(h2s=h2s, h3s=h3s),
            word_count=count_words(content or ''),
            tone='professional',
            style='article',
            key_topics=list(FALLBACK_TOPICS),
            unique_angles=list(FALLBACK_ANGLES),
            is_generic_flag=generic or _has_generic_h2(h2s),
            is_fallback=True
        )
