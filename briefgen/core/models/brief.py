"""
Brief data model.

The brief is the pipeline's only output artifact. Its wire shape (the
camelCase aliases below) is consumed by rendering and export code, so the
section names and the "exactly three sub-points per section" rule are
enforced here rather than trusted to the generator.
"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MIN_SECTIONS = 4
MAX_SECTIONS = 7
SUBPOINTS_PER_SECTION = 3

BRIEF_SECTION_KEYS = (
    "seoData",
    "targetSpecs",
    "structure",
    "competitorAnalysis",
    "contentRequirements",
    "writingInstructions",
    "metaData",
)


def normalize_heading(text: str) -> str:
    """Comparison key for headings: lowercased with whitespace runs collapsed."""
    return " ".join((text or "").split()).lower()


class BriefModel(BaseModel):
    """Base for brief sub-models: camelCase on the wire, immutable once built."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class SeoData(BriefModel):
    title: str
    primary_keyword: str
    secondary_keywords: List[str] = Field(default_factory=list)
    search_intent: str = "informational"
    difficulty: str = "medium"


class TargetSpecs(BriefModel):
    word_count: str
    reading_level: str
    tone: str
    format: str


class BriefSection(BriefModel):
    h2: str = Field(..., min_length=1)
    h3s: List[str] = Field(..., min_length=SUBPOINTS_PER_SECTION, max_length=SUBPOINTS_PER_SECTION)


class BriefStructure(BriefModel):
    h1: str = Field(..., min_length=1)
    sections: List[BriefSection] = Field(..., min_length=MIN_SECTIONS, max_length=MAX_SECTIONS)

    @field_validator('sections')
    @classmethod
    def validate_unique_headings(cls, sections):
        """Reject duplicate section headings, ignoring case and spacing."""
        seen = set()
        for section in sections:
            key = normalize_heading(section.h2)
            if key in seen:
                raise ValueError(f'Duplicate section heading: {section.h2}')
            seen.add(key)
        return sections


class CompetitorAnalysis(BriefModel):
    common_topics: List[str] = Field(default_factory=list)
    avg_word_count: str
    gaps: List[str] = Field(default_factory=list)


class ContentRequirements(BriefModel):
    must_include: List[str] = Field(default_factory=list)
    internal_links: List[str] = Field(default_factory=list)
    external_links: List[str] = Field(default_factory=list)
    visuals: List[str] = Field(default_factory=list)


class WritingInstructions(BriefModel):
    audience: str
    voice: str
    key_points: List[str] = Field(default_factory=list)
    avoid: List[str] = Field(default_factory=list)
    cta: str


class MetaData(BriefModel):
    title: str
    description: str


class Brief(BriefModel):
    """Complete content brief."""

    seo_data: SeoData
    target_specs: TargetSpecs
    structure: BriefStructure
    competitor_analysis: CompetitorAnalysis
    content_requirements: ContentRequirements
    writing_instructions: WritingInstructions
    meta_data: MetaData

    def to_wire(self) -> dict:
        """Serialize with the camelCase section names downstream consumers expect."""
        return self.model_dump(by_alias=True)

    def to_record_columns(self) -> dict:
        """Serialize each section under its snake_case storage column name."""
        return {
            'seo_data': self.seo_data.model_dump(by_alias=True),
            'target_specs': self.target_specs.model_dump(by_alias=True),
            'structure': self.structure.model_dump(by_alias=True),
            'competitor_analysis': self.competitor_analysis.model_dump(by_alias=True),
            'content_requirements': self.content_requirements.model_dump(by_alias=True),
            'writing_instructions': self.writing_instructions.model_dump(by_alias=True),
            'meta_data': self.meta_data.model_dump(by_alias=True),
        }
