"""
ArticleFlow - article ingestion pipeline with multi-backend extraction.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config
from .container import DependencyContainer
from .models import Backend, ExtractionRequest, Failure, FailureCode, IngestedArticle, RetryPolicy, Success
from .orchestrator import ExtractionOrchestrator
from .pipeline import ArticlePipeline, IngestOptions, ingest
from .sanitizer import sanitize
from .enrichment import enrich
from .urls import InvalidUrlError, normalize_url

__all__ = [
    "__version__",
    "ArticlePipeline",
    "Backend",
    "Config",
    "DependencyContainer",
    "ExtractionOrchestrator",
    "ExtractionRequest",
    "Failure",
    "FailureCode",
    "IngestOptions",
    "IngestedArticle",
    "InvalidUrlError",
    "RetryPolicy",
    "Success",
    "enrich",
    "ingest",
    "normalize_url",
    "sanitize",
]
