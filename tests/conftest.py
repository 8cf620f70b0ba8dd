"""Shared fixtures for the review analysis service tests."""

import copy
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from review_service.app.config import AppConfig
from review_service.app.models import RawPage

EXAMPLE_ANALYSIS = {
    "rating": "4.1",
    "totalReviews": 941,
    "overallSentiment": "Mostly Positive",
    "summary": "A 2-3 sentence summary of what customers think.",
    "keywords": [
        {"word": "Durable", "mentions": 25, "size": 32},
        {"word": "Battery Life", "mentions": 19, "size": 28},
        {"word": "Excellent", "mentions": 18, "size": 27},
        {"word": "Slow Support", "mentions": 15, "size": 25},
        {"word": "Expensive", "mentions": 12, "size": 22},
    ],
    "pros": [
        {"theme": "Build Quality", "percentage": 85, "description": "Customers consistently praise the solid metal build and durability."},
        {"theme": "Screen Quality", "percentage": 78, "description": "The OLED screen is bright, sharp, and a major highlight for users."},
    ],
    "cons": [
        {"theme": "Customer Support", "percentage": 30, "description": "A significant number of users reported slow or unhelpful customer support."},
        {"theme": "Software Bugs", "percentage": 22, "description": "Some users mentioned minor software glitches, though many were fixed in an update."},
    ],
    "topReviews": {
        "positive": [
            {"text": "This is the best product I've ever bought! The screen is amazing.", "rating": 5, "author": "Jane D.", "verified": True, "helpful": 12},
            {"text": "Incredibly durable and feels very premium. Battery lasts all day.", "rating": 5, "author": "Sam K.", "verified": True, "helpful": 8},
        ],
        "negative": [
            {"text": "Broke after one week. Customer support was useless. Do not buy.", "rating": 1, "author": "Mark P.", "verified": True, "helpful": 23},
            {"text": "The software is so buggy it's almost unusable. Very disappointed.", "rating": 2, "author": "Alex R.", "verified": False, "helpful": 14},
        ],
    },
    "ratingDistribution": [
        {"stars": 5, "percentage": 60},
        {"stars": 4, "percentage": 25},
        {"stars": 3, "percentage": 8},
        {"stars": 2, "percentage": 3},
        {"stars": 1, "percentage": 4},
    ],
    "insights": [
        {"topic": "Target Audience", "analysis": "This product is best suited for professionals and power users who need performance over portability."},
        {"topic": "Common Issues", "analysis": "The main complaints revolve around software bugs and poor customer support experiences."},
    ],
}


def review_page(texts: list[str]) -> str:
    """Markup shaped like a store product page, one review-body per text."""
    bodies = "\n".join(
        f'<div class="review"><div data-hook="review-body"><span>{t}</span></div></div>'
        for t in texts
    )
    return f"""<html><head><title>Product</title></head>
<body>
  <h1><span>Some Product</span></h1>
  <div id="reviews">
{bodies}
  </div>
  <footer><span>Footer text</span></footer>
</body></html>"""


@pytest.fixture
def page_with_reviews():
    return review_page


@pytest.fixture
def example_analysis() -> dict:
    return copy.deepcopy(EXAMPLE_ANALYSIS)


@pytest.fixture
def example_analysis_json() -> str:
    return json.dumps(EXAMPLE_ANALYSIS)


@pytest.fixture
def config(tmp_path) -> AppConfig:
    return AppConfig(
        gemini_api_key="test-key",
        frontend_dist=tmp_path / "no-frontend",
    )


@pytest.fixture
def make_fetcher():
    """Mocked PageFetcher returning the given markup."""

    def _make(html: str = "", url: str = "https://shop.example.com/dp/B000TEST") -> MagicMock:
        fetcher = MagicMock()
        fetcher.open = AsyncMock()
        fetcher.close = AsyncMock()
        fetcher.fetch = AsyncMock(return_value=RawPage(url=url, html=html))
        return fetcher

    return _make


@pytest.fixture
def make_analyst(example_analysis_json):
    """Mocked ReviewAnalyst echoing a fixed raw response."""

    def _make(raw_text: str | None = None) -> MagicMock:
        analyst = MagicMock()
        analyst.analyze = AsyncMock(return_value=raw_text if raw_text is not None else example_analysis_json)
        return analyst

    return _make
