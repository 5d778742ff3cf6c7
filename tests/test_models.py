"""
Tests for the data models and error types.
"""

import copy

import pytest
from pydantic import ValidationError as PydanticValidationError

from briefgen.core.models.brief import Brief, BRIEF_SECTION_KEYS, normalize_heading
from briefgen.core.models.errors import (
    AuthorizationError,
    ErrorResponse,
    ExtractionFailedError,
    InsufficientSourcesError,
    LLMError,
    NoCreditsError,
    NoSubscriptionError,
    PersistenceError,
    PipelineStage,
    PipelineTimeoutError,
    UpstreamProviderError,
    ValidationError,
    http_status_for,
)
from briefgen.core.models.pipeline import Account, BriefRequest, PipelineResult, PipelineRun
from briefgen.core.models.source import ExtractionReport, ExtractedSource, SourceCandidate, normalize_url

from conftest import GOOD_BRIEF, TOPIC, blog_candidates, make_analysis


def test_brief_round_trips_wire_shape():
    brief = Brief.model_validate(GOOD_BRIEF)

    assert brief.seo_data.primary_keyword == "container gardening"
    assert brief.to_wire() == GOOD_BRIEF
    assert tuple(brief.to_wire().keys()) == BRIEF_SECTION_KEYS


def test_brief_record_columns_use_storage_names():
    columns = Brief.model_validate(GOOD_BRIEF).to_record_columns()

    assert set(columns) == {
        "seo_data", "target_specs", "structure", "competitor_analysis",
        "content_requirements", "writing_instructions", "meta_data",
    }
    assert columns["seo_data"]["primaryKeyword"] == "container gardening"


def test_brief_rejects_wrong_subpoint_count():
    payload = copy.deepcopy(GOOD_BRIEF)
    payload["structure"]["sections"][0]["h3s"] = ["Only one"]

    with pytest.raises(PydanticValidationError):
        Brief.model_validate(payload)


def test_brief_rejects_too_few_sections():
    payload = copy.deepcopy(GOOD_BRIEF)
    payload["structure"]["sections"] = payload["structure"]["sections"][:3]

    with pytest.raises(PydanticValidationError):
        Brief.model_validate(payload)


def test_brief_rejects_duplicate_headings():
    payload = copy.deepcopy(GOOD_BRIEF)
    payload["structure"]["sections"][1]["h2"] = "choosing containers"

    with pytest.raises(PydanticValidationError):
        Brief.model_validate(payload)


def test_brief_rejects_headings_that_differ_only_in_spacing():
    payload = copy.deepcopy(GOOD_BRIEF)
    payload["structure"]["sections"][1]["h2"] = "Choosing   Containers "

    with pytest.raises(PydanticValidationError):
        Brief.model_validate(payload)


def test_normalize_heading():
    assert normalize_heading("  Soil\t pH ") == "soil ph"
    assert normalize_heading("") == ""


def test_brief_request_strips_topic():
    assert BriefRequest(topic="  container gardening ").topic == "container gardening"

    with pytest.raises(PydanticValidationError):
        BriefRequest(topic=" ab ")

    with pytest.raises(PydanticValidationError):
        BriefRequest(topic="x" * 201)


def test_normalize_url():
    assert normalize_url(" https://Example.com/Blog/Post/ ") == "https://example.com/blog/post"
    assert SourceCandidate(url="https://a.com/blog/x/").dedup_key == "https://a.com/blog/x"


def test_extraction_report_attempted():
    report = ExtractionReport(
        successes=[ExtractedSource(url="a", content="text", word_count=1, success=True)],
        failures=[ExtractedSource.failed("b", "Content too short")]
    )

    assert report.attempted == 2
    assert report.failures[0].failure_reason == "Content too short"


def test_account_subscription_state():
    assert Account(user_id="u", subscription_status="active").has_active_subscription
    assert not Account(user_id="u", subscription_status="past_due").has_active_subscription


def test_pipeline_run_degraded_marks_are_unique():
    run = PipelineRun(topic=TOPIC)
    run.mark_degraded(PipelineStage.BLOG_SEARCH)
    run.mark_degraded(PipelineStage.BLOG_SEARCH)

    assert run.degraded_stages == ["blog_search"]


def test_pipeline_result_response(good_brief):
    result = PipelineResult(
        brief=good_brief,
        brief_id="brief-9",
        topic=TOPIC,
        sources_found=6,
        sources_extracted=5,
        sources_analyzed=4,
        sources=blog_candidates(2),
        credits_remaining=3,
        total_time=12.345
    )

    response = result.to_response()

    assert response["success"] is True
    assert response["briefId"] == "brief-9"
    assert response["brief"]["structure"]["h1"] == good_brief.structure.h1
    assert response["creditsRemaining"] == 3
    assert response["metadata"]["sourcesAnalyzed"] == 4
    assert response["metadata"]["totalTime"] == "12.35s"
    assert response["metadata"]["sources"] == [c.url for c in blog_candidates(2)]


def test_build_record_includes_provenance(good_brief):
    run = PipelineRun(topic=TOPIC, user_id="user-1", candidates=blog_candidates(3))
    run.analyses = [make_analysis("https://example.com/blog/post-0")]

    record = run.build_record(good_brief)

    assert record["user_id"] == "user-1"
    assert record["meta_data"]["title"] == GOOD_BRIEF["metaData"]["title"]
    assert record["meta_data"]["sourcesAnalyzed"] == 1
    assert record["meta_data"]["totalSourcesFound"] == 3


@pytest.mark.parametrize("error,status", [
    (ValidationError("bad topic", field="topic"), 400),
    (AuthorizationError(), 401),
    (NoSubscriptionError(), 403),
    (NoCreditsError(), 403),
    (PipelineTimeoutError(600), 504),
    (UpstreamProviderError("search blew up", stage=PipelineStage.BLOG_SEARCH), 502),
    (LLMError("down"), 502),
    (InsufficientSourcesError(TOPIC), 500),
    (PersistenceError("insert failed"), 500),
    (RuntimeError("boom"), 500),
])
def test_http_status_for(error, status):
    assert http_status_for(error) == status


def test_stage_errors_carry_their_stage():
    assert InsufficientSourcesError(TOPIC).stage == PipelineStage.BLOG_SEARCH
    assert ExtractionFailedError().stage == PipelineStage.CONTENT_EXTRACTION
    assert PersistenceError("x").details["stage"] == "database_save"


def test_error_response_from_stage_error():
    response = ErrorResponse.from_exception(ExtractionFailedError(extracted=1, attempted=5))

    assert response.status == 500
    assert response.step == "content_extraction"
    assert response.error_code == "EXTRACTION_FAILED"
    assert response.details["attempted"] == 5


def test_error_response_from_validation_error():
    response = ErrorResponse.from_exception(ValidationError("Topic too short", field="topic", value="ab"))

    assert response.status == 400
    assert response.field == "topic"
    assert response.value == "ab"
    assert response.step is None
