"""
ReviewAnalyst - the one Gemini call of a run.
Sends the sampled review texts under a fixed JSON contract and hands back
the raw response text. Parsing lives in response_parser.py.
"""
import json
import logging

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..config import PLACEHOLDER_API_KEY, AppConfig
from ..errors import UpstreamAPIError, UpstreamAuthError, UpstreamTransportError

logger = logging.getLogger("ReviewAnalyst")

SYSTEM_CONTRACT_VERSION = "2025-09"

SYSTEM_CONTRACT = """You are an expert product review analyst. You will receive a list of raw customer reviews for a single product. Analyze all of them and answer with ONE JSON object shaped exactly like the example below. Return nothing outside the JSON object: no preamble, no markdown fences.

Field rules:
- "rating": average star rating as a string such as "4.1", or "N/A" when it cannot be inferred.
- "totalReviews": integer, total number of reviews the product has (0 or more).
- "overallSentiment": one of "Mostly Positive", "Mixed", "Mostly Negative", "Neutral".
- "summary": 2-3 sentences on what customers think.
- "keywords": recurring words or phrases; "mentions" is how often they appear, "size" is a display weight.
- "pros" / "cons": themes with "percentage" (0-100) of reviews that raise them.
- "topReviews": representative reviews; "rating" is 1-5, "helpful" is a vote count.
- "ratingDistribution": one entry per star level 5..1, percentages summing to about 100.
- "insights": short analyses of notable topics.

{
  "rating": "4.1",
  "totalReviews": 941,
  "overallSentiment": "Mostly Positive",
  "summary": "A 2-3 sentence summary of what customers think.",
  "keywords": [
    {"word": "Durable", "mentions": 25, "size": 32},
    {"word": "Battery Life", "mentions": 19, "size": 28},
    {"word": "Excellent", "mentions": 18, "size": 27},
    {"word": "Slow Support", "mentions": 15, "size": 25},
    {"word": "Expensive", "mentions": 12, "size": 22}
  ],
  "pros": [
    {"theme": "Build Quality", "percentage": 85, "description": "Customers consistently praise the solid metal build and durability."},
    {"theme": "Screen Quality", "percentage": 78, "description": "The OLED screen is bright, sharp, and a major highlight for users."}
  ],
  "cons": [
    {"theme": "Customer Support", "percentage": 30, "description": "A significant number of users reported slow or unhelpful customer support."},
    {"theme": "Software Bugs", "percentage": 22, "description": "Some users mentioned minor software glitches, though many were fixed in an update."}
  ],
  "topReviews": {
    "positive": [
      {"text": "This is the best product I've ever bought! The screen is amazing.", "rating": 5, "author": "Jane D.", "verified": true, "helpful": 12},
      {"text": "Incredibly durable and feels very premium. Battery lasts all day.", "rating": 5, "author": "Sam K.", "verified": true, "helpful": 8}
    ],
    "negative": [
      {"text": "Broke after one week. Customer support was useless. Do not buy.", "rating": 1, "author": "Mark P.", "verified": true, "helpful": 23},
      {"text": "The software is so buggy it's almost unusable. Very disappointed.", "rating": 2, "author": "Alex R.", "verified": false, "helpful": 14}
    ]
  },
  "ratingDistribution": [
    {"stars": 5, "percentage": 60},
    {"stars": 4, "percentage": 25},
    {"stars": 3, "percentage": 8},
    {"stars": 2, "percentage": 3},
    {"stars": 1, "percentage": 4}
  ],
  "insights": [
    {"topic": "Target Audience", "analysis": "This product is best suited for professionals and power users who need performance over portability."},
    {"topic": "Common Issues", "analysis": "The main complaints revolve around software bugs and poor customer support experiences."}
  ]
}
"""

# Checked before GoogleAPICallError: ServiceUnavailable/DeadlineExceeded subclass it.
_TRANSPORT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.RetryError,
    ConnectionError,
    OSError,
)


def build_user_content(reviews: list[str]) -> str:
    return f"Here is the list of reviews: {json.dumps(reviews, ensure_ascii=False)}"


class ReviewAnalyst:
    def __init__(self, config: AppConfig, model=None):
        self.config = config
        self._model = model

    def _check_credentials(self) -> None:
        key = self.config.gemini_api_key.strip()
        if not key or key == PLACEHOLDER_API_KEY:
            raise UpstreamAuthError()

    def _get_model(self):
        if self._model is None:
            genai.configure(api_key=self.config.gemini_api_key)
            self._model = genai.GenerativeModel(
                self.config.gemini_model,
                system_instruction=SYSTEM_CONTRACT,
                generation_config={
                    "response_mime_type": "application/json",
                    "temperature": self.config.temperature,
                },
            )
        return self._model

    async def analyze(self, reviews: list[str]) -> str:
        """
        Input: sampled review texts (already capped to max_batch_size)
        Output: raw JSON text exactly as Gemini returned it
        Exactly one attempt; retrying a paid call is left to the caller.
        """
        self._check_credentials()
        logger.info(f"Sending {len(reviews)} reviews to Gemini API for analysis...")

        try:
            resp = await self._get_model().generate_content_async(
                build_user_content(reviews),
                request_options={
                    "retry": None,
                    "timeout": self.config.model_timeout_seconds,
                },
            )
        except _TRANSPORT_ERRORS as e:
            logger.error(f"Error reaching Gemini API: {e}")
            raise UpstreamTransportError() from e
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"Gemini API rejected the request: {e}")
            raise UpstreamAPIError(f"AI API Error: {e.message}") from e

        try:
            text = resp.text
        except ValueError as e:
            # No candidate text, e.g. the prompt or the answer was blocked
            logger.error(f"Gemini returned no usable content: {e}")
            raise UpstreamAPIError("AI API Error: the model returned no content.") from e

        if not text or not text.strip():
            raise UpstreamAPIError("AI API Error: the model returned no content.")

        logger.info("Received AI analysis.")
        return text
