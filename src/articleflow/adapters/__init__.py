"""
Backend adapters for upstream article extraction services.

Each adapter issues one upstream call per invocation and maps the provider
payload onto ``RawExtraction``:
1. StructuredExtractionAdapter: structured-extraction API (Mercury parser)
2. ExtractApiAdapter: third-party extraction/summarization API
3. ScraperAdapter: raw HTML fetch with per-domain selector rules
"""

from .errors import AdapterError, AdapterErrorCode
from .extract_api import ExtractApiAdapter
from .protocols import Adapter
from .scraper import SCRAPER_RULES, ScraperAdapter, ScraperRule
from .structured import StructuredExtractionAdapter
from .transport import HttpTransport, TransportResponse

__all__ = [
    "Adapter",
    "AdapterError",
    "AdapterErrorCode",
    "ExtractApiAdapter",
    "HttpTransport",
    "SCRAPER_RULES",
    "ScraperAdapter",
    "ScraperRule",
    "StructuredExtractionAdapter",
    "TransportResponse",
]
