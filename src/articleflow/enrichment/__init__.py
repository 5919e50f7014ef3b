"""
Metadata enrichment: reading time, publication date, content type, topic
tags, author confidence and quality score.
"""

from .classify import author_confidence, detect_content_type
from .dates import extract_publication_date, parse_explicit_date, scan_content_date
from .enricher import count_images_and_links, enrich
from .quality import QualitySignals, quality_score, reading_time_minutes
from .topics import domain_tags, generate_topic_tags, score_topics, topic_threshold

__all__ = [
    "QualitySignals",
    "author_confidence",
    "count_images_and_links",
    "detect_content_type",
    "domain_tags",
    "enrich",
    "extract_publication_date",
    "generate_topic_tags",
    "parse_explicit_date",
    "quality_score",
    "reading_time_minutes",
    "scan_content_date",
    "score_topics",
    "topic_threshold",
]
