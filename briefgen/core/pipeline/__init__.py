"""
Brief-generation pipeline stages and orchestration.
"""

from .source_finder import SourceFinder, is_valid_blog_url, simplify_topic
from .content_extractor import ContentExtractor, validate_content, derive_title, count_words
from .source_analyzer import SourceAnalyzer
from .brief_synthesizer import BriefSynthesizer, SourceAggregate
from .genericity import detect_genericity
from .orchestrator import BriefPipeline

__all__ = [
    'SourceFinder',
    'is_valid_blog_url',
    'simplify_topic',
    'ContentExtractor',
    'validate_content',
    'derive_title',
    'count_words',
    'SourceAnalyzer',
    'BriefSynthesizer',
    'SourceAggregate',
    'detect_genericity',
    'BriefPipeline'
]
