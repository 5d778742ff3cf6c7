"""
Shared fixtures and in-memory collaborators for the brief generator tests.
"""

import json
from typing import Any, Dict, List, Optional

import pytest

from briefgen.core.interfaces import (
    AccountGateway,
    ArtifactPublisher,
    BriefStore,
    ExtractionProvider,
    Notifier,
    SearchProvider,
)
from briefgen.core.models.brief import Brief
from briefgen.core.models.errors import LLMError
from briefgen.core.models.llm import LLMResponse
from briefgen.core.models.pipeline import Account
from briefgen.core.models.source import SourceAnalysis, SourceCandidate, SourceHeadings
from briefgen.core.pipeline.brief_synthesizer import BriefSynthesizer
from briefgen.core.pipeline.content_extractor import ContentExtractor
from briefgen.core.pipeline.orchestrator import BriefPipeline
from briefgen.core.pipeline.source_finder import SourceFinder


TOPIC = "container gardening"


class RecordingSleep:
    """Sleep replacement that records requested delays and returns immediately."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float):
        self.calls.append(seconds)


class FakeSearch(SearchProvider):
    """Search provider answering from a query -> results map."""

    def __init__(self, results: Optional[Dict[str, Any]] = None, default: Any = None):
        self.results = results or {}
        self.default = default if default is not None else []
        self.queries: List[str] = []

    async def search(self, query: str, count: int = 10) -> List[SourceCandidate]:
        self.queries.append(query)
        outcome = self.results.get(query, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)


class FakeExtractor(ExtractionProvider):
    """Extraction provider answering from a url -> text map."""

    def __init__(self, pages: Optional[Dict[str, Any]] = None, default: Any = None):
        self.pages = pages or {}
        self.default = default
        self.calls: List[str] = []

    async def extract(self, url: str) -> str:
        self.calls.append(url)
        outcome = self.pages.get(url, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            raise RuntimeError(f"no page for {url}")
        return outcome


class FakeLLM:
    """
    Model client that replays scripted responses.

    Each item is returned as the response content (dicts and lists are
    JSON-encoded) or raised if it is an exception. Once the script runs
    out, ``default`` is used the same way.
    """

    def __init__(self, responses: Optional[List[Any]] = None, default: Any = None):
        self.responses = list(responses or [])
        self.default = default if default is not None else LLMError("no scripted response", retryable=False)
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, prompt: str, **kwargs) -> LLMResponse:
        self.calls.append({"prompt": prompt, **kwargs})
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, Exception):
            raise item
        content = item if isinstance(item, str) else json.dumps(item)
        return LLMResponse(content=content, model="fake-model", provider="fake")


class FakeStore(BriefStore):
    def __init__(self, brief_id: str = "brief-1", error: Exception = None):
        self.brief_id = brief_id
        self.error = error
        self.saved: List[Dict[str, Any]] = []
        self.artifact_urls: Dict[str, str] = {}

    async def save_brief(self, record: Dict[str, Any]) -> str:
        if self.error:
            raise self.error
        self.saved.append(record)
        return self.brief_id

    async def update_artifact_url(self, brief_id: str, artifact_url: str) -> None:
        self.artifact_urls[brief_id] = artifact_url


class FakeGateway(AccountGateway):
    def __init__(self, accounts: Optional[Dict[str, Account]] = None, lookup_error: Exception = None,
                 deduct_error: Exception = None):
        self.accounts = accounts or {}
        self.lookup_error = lookup_error
        self.deduct_error = deduct_error
        self.deducted: List[str] = []

    async def get_account(self, user_id: str) -> Optional[Account]:
        if self.lookup_error:
            raise self.lookup_error
        return self.accounts.get(user_id)

    async def deduct_credit(self, account: Account) -> int:
        if self.deduct_error:
            raise self.deduct_error
        self.deducted.append(account.user_id)
        return max(0, account.credits_remaining - 1)


class FakePublisher(ArtifactPublisher):
    def __init__(self, url: Optional[str] = "https://cdn.example.com/briefs/user-1/brief-1.pdf", error: Exception = None):
        self.url = url
        self.error = error
        self.published: List[str] = []

    async def publish(self, user_id: str, brief_id: str, record: Dict[str, Any]) -> Optional[str]:
        if self.error:
            raise self.error
        self.published.append(brief_id)
        return self.url


class FakeNotifier(Notifier):
    def __init__(self, error: Exception = None):
        self.error = error
        self.sent: List[Dict[str, Any]] = []

    async def notify(self, account: Account, brief_id: str, topic: str, artifact_url: str) -> bool:
        if self.error:
            raise self.error
        self.sent.append({"user_id": account.user_id, "brief_id": brief_id, "topic": topic, "url": artifact_url})
        return True


class StubAnalyzer:
    """Analyzer that raises for selected URLs and returns a fixed analysis otherwise."""

    def __init__(self, failing_urls=()):
        self.failing_urls = set(failing_urls)
        self.calls: List[str] = []

    async def analyze(self, content: str, url: str, title: str) -> SourceAnalysis:
        self.calls.append(url)
        if url in self.failing_urls:
            raise RuntimeError(f"analysis exploded for {url}")
        return make_analysis(url)


class StubSynthesizer:
    """Synthesizer that fails a set number of times before returning ``brief``."""

    def __init__(self, brief: Brief, failures: int = 0):
        self.brief = brief
        self.failures = failures
        self.calls: List[List[SourceAnalysis]] = []

    async def synthesize(self, analyses: List[SourceAnalysis], topic: str) -> Brief:
        self.calls.append(list(analyses))
        if len(self.calls) <= self.failures:
            raise RuntimeError("synthesis exploded")
        return self.brief


def make_article(title: str, headings=("Choosing Containers", "Potting Soil Basics", "Watering Schedules",
                                       "Feeding Plants", "Seasonal Care"), words_per_section: int = 120) -> str:
    """Markdown article comfortably above the minimum word count."""
    parts = [f"# {title}", ""]
    for heading in headings:
        parts.append(f"## {heading}")
        parts.append("")
        parts.append(" ".join(["plants"] * words_per_section))
        parts.append("")
    return "\n".join(parts)


def make_analysis(url: str, **overrides) -> SourceAnalysis:
    data = dict(
        source_url=url,
        primary_keywords=["container gardening", "potting soil", "drainage"],
        headings=SourceHeadings(
            h2s=["Choosing Containers", "Potting Soil Basics", "Watering Schedules"],
            h3s=["Terracotta versus plastic pots", "Mixing perlite into potting soil"]
        ),
        word_count=1400,
        tone="conversational",
        style="guide",
        key_topics=["drainage holes", "soil mixes", "watering frequency"],
        unique_angles=["balcony wind exposure"],
    )
    data.update(overrides)
    return SourceAnalysis(**data)


def blog_candidates(count: int, domain: str = "example.com") -> List[SourceCandidate]:
    return [
        SourceCandidate(url=f"https://{domain}/blog/post-{i}", title=f"Post {i}")
        for i in range(count)
    ]


GOOD_BRIEF: Dict[str, Any] = {
    "seoData": {
        "title": "Container Gardening on Small Balconies: What Actually Works",
        "primaryKeyword": "container gardening",
        "secondaryKeywords": ["potting soil", "drainage"],
        "searchIntent": "informational",
        "difficulty": "medium",
    },
    "targetSpecs": {
        "wordCount": "1200-1600 words",
        "readingLevel": "Grade 8-10",
        "tone": "conversational",
        "format": "guide",
    },
    "structure": {
        "h1": "Container Gardening on Small Balconies: What Actually Works",
        "sections": [
            {"h2": "Choosing Containers", "h3s": [
                "Terracotta versus plastic pots on a sunny balcony",
                "Sizing pots for tomatoes and peppers",
                "Why drainage holes matter more than material",
            ]},
            {"h2": "Potting Soil Basics", "h3s": [
                "Mixing perlite into bagged potting soil",
                "When to replace tired container soil",
                "Compost ratios for vegetables in pots",
            ]},
            {"h2": "Watering Schedules", "h3s": [
                "Checking moisture with the finger test",
                "Self-watering pots for busy weeks",
                "Adjusting watering for windy balconies",
            ]},
            {"h2": "Feeding Plants", "h3s": [
                "Slow-release fertilizer for container vegetables",
                "Liquid feed schedules for herbs",
                "Spotting nitrogen deficiency in pot-grown greens",
            ]},
        ],
    },
    "competitorAnalysis": {
        "commonTopics": ["drainage holes", "soil mixes"],
        "avgWordCount": "1400 words",
        "gaps": ["Balcony wind exposure"],
    },
    "contentRequirements": {
        "mustInclude": ["drainage holes", "soil mixes"],
        "internalLinks": [],
        "externalLinks": [],
        "visuals": ["Pot size chart"],
    },
    "writingInstructions": {
        "audience": "Apartment gardeners",
        "voice": "Conversational",
        "keyPoints": ["Drainage first", "Match pot size to root depth"],
        "avoid": ["Unverified yield claims"],
        "cta": "Plant your first balcony container this weekend",
    },
    "metaData": {
        "title": "Container Gardening on Small Balconies",
        "description": "Pots, soil and watering routines that keep balcony plants thriving.",
    },
}


@pytest.fixture
def good_brief_payload() -> Dict[str, Any]:
    return json.loads(json.dumps(GOOD_BRIEF))


@pytest.fixture
def good_brief() -> Brief:
    return Brief.model_validate(GOOD_BRIEF)


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def active_account() -> Account:
    return Account(
        user_id="user-1",
        email="gardener@example.com",
        name="Robin",
        subscription_status="active",
        credits_remaining=5,
        plan_type="pro"
    )


@pytest.fixture
def gateway(active_account) -> FakeGateway:
    return FakeGateway({active_account.user_id: active_account})


@pytest.fixture
def make_pipeline(good_brief, gateway, no_sleep):
    """Factory for a pipeline wired to in-memory collaborators; keyword overrides replace any part."""

    def factory(**overrides) -> BriefPipeline:
        candidates = overrides.pop("candidates", blog_candidates(6))
        search = overrides.pop("search", FakeSearch(default=candidates))
        pages = {c.url: make_article(c.title) for c in candidates}
        extractor = overrides.pop("extractor", FakeExtractor(pages))

        parts = dict(
            source_finder=SourceFinder(search, delay=0, sleep=no_sleep),
            content_extractor=ContentExtractor(extractor, delay_min=0, delay_max=0, sleep=no_sleep),
            source_analyzer=StubAnalyzer(),
            brief_synthesizer=StubSynthesizer(good_brief),
            brief_store=FakeStore(),
            account_gateway=gateway,
            artifact_publisher=FakePublisher(),
            notifier=FakeNotifier(),
            analysis_delay=0,
            synthesis_retry_delay=2.0,
            sleep=no_sleep,
        )
        parts.update(overrides)
        return BriefPipeline(**parts)

    return factory


@pytest.fixture
def synthesizer_factory():
    def factory(responses=None, default=None, **kwargs):
        llm = FakeLLM(responses, default)
        return BriefSynthesizer(llm, **kwargs), llm

    return factory
