"""Calibrated answer synthesis from scored sources."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

import openai
from pydantic import BaseModel, Field

from core.config import ConfigurationError, settings
from core.models import (
    AnswerMetadata,
    AnswerResult,
    ConfidenceBreakdown,
    ConfidenceFactor,
    ConfidenceFactors,
    ConversationTurn,
    SourceHit,
    StructuredAnswer,
)
from evaluation.confidence import (
    CERTAINTY_WEIGHT,
    RECENCY_WEIGHT,
    SOURCE_AGREEMENT_WEIGHT,
    SOURCE_QUALITY_WEIGHT,
)
from generation.extractor import (
    extract_biases,
    extract_cited_sources,
    extract_controversies,
    extract_limitations,
    extract_short_answer,
)
from generation.prompts import Tier, build_system_prompt, build_user_prompt, recent_turns

logger = logging.getLogger(__name__)

GENERATION_FAILED = "The answer could not be generated; this is a fallback response"


class GenerationError(RuntimeError):
    pass


class GenerationResult(BaseModel):
    text: str
    token_usage: dict[str, int] = Field(default_factory=dict)


class AnswerGenerator(Protocol):
    """Generation capability consumed by synthesis."""

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        prior_turns: list[ConversationTurn] | None = None,
    ) -> GenerationResult:
        """Generate answer text."""


class OpenAIGenerator:
    """Answer generation via OpenAI chat completions."""

    def __init__(self, openai_client: openai.OpenAI | None = None, model: str | None = None):
        """Initialize generator with an optional OpenAI client.

        Args:
            openai_client: Optional OpenAI client (will create if None)
            model: Chat model name (default: settings.llm_model)
        """
        if openai_client is None:
            if not settings.openai_api_key:
                raise ConfigurationError("OpenAI API key not configured")

            self.openai_client = openai.OpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.generation_timeout_seconds,
            )
        else:
            self.openai_client = openai_client

        self.model = model or settings.llm_model

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        prior_turns: list[ConversationTurn] | None = None,
    ) -> GenerationResult:
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend({"role": t.role, "content": t.content} for t in prior_turns or [])
        messages.append({"role": "user", "content": user_prompt})

        try:
            response = self.openai_client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
                presence_penalty=0.1,
                frequency_penalty=0.1,
                timeout=settings.generation_timeout_seconds,
            )
        except openai.OpenAIError as e:
            raise GenerationError(f"OpenAI request failed: {e}") from e

        text = response.choices[0].message.content
        if not text:
            raise GenerationError("OpenAI returned an empty completion")

        logger.debug("OpenAI completion received (%d chars)", len(text))
        return GenerationResult(text=text, token_usage=_token_usage(response))


def _token_usage(response) -> dict[str, int]:
    usage = getattr(response, "usage", None)
    counts = {}
    for key in ("prompt_tokens", "completion_tokens", "total_tokens"):
        value = getattr(usage, key, None)
        if isinstance(value, int):
            counts[key] = value
    return counts


def fallback_response(breakdown: ConfidenceBreakdown) -> str:
    """Canned answer text for when generation fails, worded per confidence tier."""
    confidence = breakdown.overall
    tier = Tier.for_breakdown(breakdown)

    if tier is Tier.HIGH:
        return (
            f"Based on my search results ({confidence}% confidence), I found relevant information "
            "about your question. However, I'm experiencing a technical issue generating a complete "
            "response. Please try again in a moment."
        )
    if tier is Tier.MEDIUM:
        return (
            f"I found some relevant information about your question with {confidence}% confidence, "
            "though sources show mixed results. I'm experiencing a technical issue generating a "
            "detailed response. Please try again shortly."
        )
    return (
        f"I found limited reliable information about your question ({confidence}% confidence). "
        "The available sources don't provide clear answers, and I'm also experiencing a technical "
        "issue. You might want to try rephrasing your question or consulting specialized sources directly."
    )


def build_answer(
    text: str,
    sources: list[SourceHit],
    breakdown: ConfidenceBreakdown,
    now: datetime | None = None,
) -> StructuredAnswer:
    """Parse generated text into a StructuredAnswer."""
    return StructuredAnswer(
        main_response=text,
        short_response=extract_short_answer(text),
        confidence=breakdown.overall,
        confidence_level=breakdown.level,
        sources=extract_cited_sources(text, sources),
        factors=breakdown.factors,
        biases=extract_biases(text, sources, now),
        controversies=extract_controversies(text, sources),
        limitations=extract_limitations(text, breakdown),
    )


def normalize_context(
    prior_context: list[ConversationTurn] | str | None,
) -> list[ConversationTurn]:
    if not prior_context:
        return []
    if isinstance(prior_context, str):
        return [ConversationTurn(role="user", content=prior_context)]
    return recent_turns(prior_context)


def synthesize(
    question: str,
    sources: list[SourceHit],
    breakdown: ConfidenceBreakdown,
    generator: AnswerGenerator,
    prior_context: list[ConversationTurn] | str | None = None,
    topic: str = "general",
    logger: logging.Logger | None = None,
) -> AnswerResult:
    """Generate a confidence-calibrated answer and extract its structure.

    Args:
        question: User question
        sources: Classified sources, in retrieval order
        breakdown: Confidence breakdown for those sources
        generator: Generation capability
        prior_context: Earlier conversation turns (or a context string)
        topic: Detected topic label, recorded in metadata
        logger: Optional logger (module logger if None)

    Returns:
        AnswerResult; success is False when generation failed, in which case
        the answer body is the tier-specific fallback text
    """
    log = logger or logging.getLogger(__name__)
    turns = normalize_context(prior_context)

    system_prompt = build_system_prompt(breakdown)
    user_prompt = build_user_prompt(question, sources, breakdown, turns)

    log.info("Generating %s-confidence answer for: %s", breakdown.level, question[:50])
    try:
        generated = generator.generate(system_prompt, user_prompt, turns)
    except Exception as e:
        log.error("Answer generation failed: %s", e)
        text = fallback_response(breakdown)
        answer = build_answer(text, sources, breakdown)
        answer = answer.model_copy(
            update={"sources": [], "limitations": answer.limitations + [GENERATION_FAILED]}
        )
        return AnswerResult(
            success=False,
            answer=answer,
            fallback_response=text,
            error=str(e) or type(e).__name__,
            metadata=AnswerMetadata(
                search_results_analyzed=len(sources),
                response_length=len(text),
                topic=topic,
            ),
        )

    answer = build_answer(generated.text, sources, breakdown)
    log.info(
        "Answer generated (%d chars, %d/%d sources cited, tokens=%s)",
        len(generated.text),
        len(answer.sources),
        len(sources),
        generated.token_usage,
    )
    return AnswerResult(
        success=True,
        answer=answer,
        metadata=AnswerMetadata(
            search_results_analyzed=len(sources),
            sources_used=len(answer.sources),
            response_length=len(generated.text),
            token_usage=generated.token_usage,
            topic=topic,
        ),
    )


def no_evidence_fallback(question: str, topic: str = "general") -> AnswerResult:
    """Fixed-shape answer for when retrieval found nothing; never calls a generator."""
    main_response = (
        f'I couldn\'t find any reliable information to answer your question: "{question}". '
        "This could mean:\n\n"
        "1. The topic is very specialized or new\n"
        "2. My search terms need adjustment\n"
        "3. The information isn't publicly available\n\n"
        "Would you like me to try searching with different terms, or can you provide more "
        "context about what you're looking for?"
    )
    factors = ConfidenceFactors(
        source_quality=ConfidenceFactor(score=0, weight=SOURCE_QUALITY_WEIGHT, details="No sources found"),
        source_agreement=ConfidenceFactor(score=0, weight=SOURCE_AGREEMENT_WEIGHT, details="No sources to compare"),
        recency_score=ConfidenceFactor(score=0, weight=RECENCY_WEIGHT, details="No dated sources available"),
        certainty_score=ConfidenceFactor(score=0, weight=CERTAINTY_WEIGHT, details="No text to analyze"),
    )
    answer = StructuredAnswer(
        main_response=main_response,
        short_response="I couldn't find reliable information to answer this question.",
        confidence=0,
        confidence_level="low",
        sources=[],
        factors=factors,
        biases=["No sources available for analysis"],
        controversies=[],
        limitations=["Unable to find relevant information through web search"],
    )
    return AnswerResult(
        success=True,
        answer=answer,
        metadata=AnswerMetadata(response_length=len(main_response), topic=topic),
    )
