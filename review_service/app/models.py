from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class PipelineStage(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    SAMPLING = "sampling"
    REQUESTING = "requesting"
    VALIDATING = "validating"
    DONE = "done"
    FAILED = "failed"


class RawPage(BaseModel):
    url: str
    html: str
    status_code: int = 200


class AnalyzeRequest(BaseModel):
    url: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    kind: str


# --- Analysis schema (what the model must return) ---

class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Keyword(_WireModel):
    word: str
    mentions: int = Field(ge=0)
    size: int


class Theme(_WireModel):
    theme: str
    percentage: int = Field(ge=0, le=100)
    description: str


class ReviewSample(_WireModel):
    text: str
    rating: int = Field(ge=1, le=5)
    author: str
    verified: bool
    helpful: int = Field(ge=0)


class TopReviews(_WireModel):
    positive: list[ReviewSample]
    negative: list[ReviewSample]


class RatingBucket(_WireModel):
    stars: int = Field(ge=1, le=5)
    percentage: int = Field(ge=0, le=100)


class Insight(_WireModel):
    topic: str
    analysis: str


Sentiment = Literal["Mostly Positive", "Mixed", "Mostly Negative", "Neutral"]


class Analysis(_WireModel):
    rating: str = Field(pattern=r"^(N/A|\d+(\.\d+)?)$")
    total_reviews: int = Field(ge=0)
    overall_sentiment: Sentiment
    summary: str = Field(min_length=1)
    keywords: list[Keyword]
    pros: list[Theme]
    cons: list[Theme]
    top_reviews: TopReviews
    rating_distribution: list[RatingBucket]
    insights: list[Insight]

    @field_validator("rating", mode="before")
    @classmethod
    def _rating_as_string(cls, value):
        # The model sometimes answers 4.1 instead of "4.1"
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("summary")
    @classmethod
    def _summary_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("summary must not be blank")
        return value

    def distribution_total(self) -> int:
        return sum(b.percentage for b in self.rating_distribution)
