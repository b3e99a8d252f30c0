"""Data models for the honest-qa evidence pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class QualityTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LIMITED = "limited"


class SourceCategory(str, Enum):
    GOVERNMENT = "government"
    ACADEMIC = "academic"
    INTERNATIONAL_ORG = "international_org"
    SCIENTIFIC_JOURNAL = "scientific_journal"
    NEWS_AGENCY = "news_agency"
    FACT_CHECKER = "fact_checker"
    ENCYCLOPEDIA = "encyclopedia"
    BLOG = "blog"
    WEBSITE = "website"


class SourceHit(BaseModel):
    """A retrieved document, classified and immutable."""

    position: int
    title: str = ""
    url: str
    snippet: str = ""
    display_link: str = ""
    domain: str = ""
    quality_score: int = 50
    quality_tier: QualityTier = QualityTier.LIMITED
    category: SourceCategory = SourceCategory.WEBSITE
    published_at: datetime | None = None
    author: str | None = None
    og_description: str | None = None

    model_config = {"frozen": True}


class RetrievalBatch(BaseModel):
    """Ordered, URL-unique hits produced by one retrieval call."""

    hits: list[SourceHit] = Field(default_factory=list)
    source_type: Literal["trusted", "mixed", "general"] = "general"
    total_results: int = 0
    search_time_seconds: float = 0.0
    query: str = ""
    degraded: bool = False
    error: str | None = None


class ConfidenceFactor(BaseModel):
    score: int
    weight: int
    details: str = ""

    model_config = {"frozen": True}


class ConfidenceFactors(BaseModel):
    """The four weighted factors behind an overall confidence score."""

    source_quality: ConfidenceFactor
    source_agreement: ConfidenceFactor
    recency_score: ConfidenceFactor
    certainty_score: ConfidenceFactor

    model_config = {"frozen": True}


ConfidenceLevel = Literal["low", "medium", "high"]


class ConfidenceBreakdown(BaseModel):
    overall: int
    level: ConfidenceLevel
    factors: ConfidenceFactors | None = None
    error: str | None = None

    model_config = {"frozen": True}


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant"] = "user"
    content: str


class StructuredAnswer(BaseModel):
    """Terminal artifact of the pipeline: calibrated answer plus evidence analysis."""

    main_response: str
    short_response: str = ""
    confidence: int = 0
    confidence_level: ConfidenceLevel = "low"
    sources: list[SourceHit] = Field(default_factory=list)
    factors: ConfidenceFactors | None = None
    biases: list[str] = Field(default_factory=list)
    controversies: list[str] = Field(default_factory=list)
    limitations: list[str] = Field(default_factory=list)


class AnswerMetadata(BaseModel):
    search_results_analyzed: int = 0
    sources_used: int = 0
    response_length: int = 0
    token_usage: dict[str, int] = Field(default_factory=dict)
    topic: str = "general"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AnswerResult(BaseModel):
    """Outcome of synthesis; ``success`` is False when generation failed."""

    success: bool = True
    answer: StructuredAnswer
    fallback_response: str | None = None
    error: str | None = None
    metadata: AnswerMetadata = Field(default_factory=AnswerMetadata)


class SearchPreview(BaseModel):
    """Retrieval and scoring without synthesis."""

    sources: list[SourceHit] = Field(default_factory=list)
    confidence: ConfidenceBreakdown
    topic: str = "general"
    source_type: Literal["trusted", "mixed", "general"] = "general"
    degraded: bool = False
