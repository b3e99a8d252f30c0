"""Confidence-tier-conditioned prompt construction."""

from __future__ import annotations

from enum import Enum
from typing import Callable

from core.config import settings
from core.models import ConfidenceBreakdown, ConversationTurn, SourceHit


class Tier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def for_breakdown(cls, breakdown: ConfidenceBreakdown) -> Tier:
        return cls(breakdown.level)


def _high_instructions(overall: int) -> str:
    return (
        f"You have HIGH confidence ({overall}%) in the available information.\n"
        "Be clear and authoritative while still acknowledging any minor uncertainties.\n"
        "Start with a direct answer, then provide supporting details."
    )


def _medium_instructions(overall: int) -> str:
    return (
        f"You have MEDIUM confidence ({overall}%) in the available information.\n"
        "Be balanced in your response: provide the best available answer while clearly noting uncertainties.\n"
        'Use phrases like "based on available evidence", "current understanding suggests", "appears to be".'
    )


def _low_instructions(overall: int) -> str:
    return (
        f"You have LOW confidence ({overall}%) in the available information.\n"
        "Be very transparent about the limitations and uncertainties.\n"
        "Begin your response with an explicit statement that you cannot answer with confidence, "
        "before giving any content.\n"
        'Use phrases like "I cannot say with confidence", "the evidence is limited", '
        '"there is significant uncertainty".'
    )


TIER_INSTRUCTIONS: dict[Tier, Callable[[int], str]] = {
    Tier.HIGH: _high_instructions,
    Tier.MEDIUM: _medium_instructions,
    Tier.LOW: _low_instructions,
}

SYSTEM_PROMPT_TEMPLATE = """You are an AI assistant that prioritizes transparency and accuracy above all else.

{instructions}

Your response must include:
1. A direct answer (even if it's "I don't know with confidence")
2. Key supporting points from the search results, tied to specific sources
3. Important caveats or limitations
4. Any areas of controversy or disagreement among sources

CRITICAL RULES:
- Never claim certainty when sources disagree
- Always mention if information might be outdated
- Acknowledge when you cannot find reliable information
- Be concise but thorough
- Cite specific sources when making claims
- If sources strongly contradict each other, explain both viewpoints

Format your response in clear paragraphs without using bullet points or lists."""


def build_system_prompt(breakdown: ConfidenceBreakdown) -> str:
    tier = Tier.for_breakdown(breakdown)
    return SYSTEM_PROMPT_TEMPLATE.format(instructions=TIER_INSTRUCTIONS[tier](breakdown.overall))


def format_source(index: int, source: SourceHit) -> str:
    lines = [
        f"Source {index} ({source.quality_tier.value} quality, {source.category.value}):",
        f"Title: {source.title}",
        f"Domain: {source.domain}",
        f"Snippet: {source.snippet}",
    ]
    if source.published_at is not None:
        lines.append(f"Published: {source.published_at.date().isoformat()}")
    return "\n".join(lines)


def format_breakdown(breakdown: ConfidenceBreakdown) -> str:
    lines = [
        "Confidence Analysis:",
        f"- Overall Confidence: {breakdown.overall}% ({breakdown.level})",
    ]
    factors = breakdown.factors
    if factors is None:
        lines.append(f"- Factor breakdown unavailable: {breakdown.error}")
        return "\n".join(lines)

    for label, factor in (
        ("Source Quality", factors.source_quality),
        ("Source Agreement", factors.source_agreement),
        ("Information Recency", factors.recency_score),
        ("Language Certainty", factors.certainty_score),
    ):
        lines.append(f"- {label}: {factor.score}% - {factor.details}")
    return "\n".join(lines)


def format_prior_turns(turns: list[ConversationTurn]) -> str:
    return "\n".join(f"{turn.role.capitalize()}: {turn.content}" for turn in turns)


def recent_turns(turns: list[ConversationTurn] | None) -> list[ConversationTurn]:
    """The last few turns of a conversation, oldest first."""
    if not turns:
        return []
    return list(turns[-settings.max_prior_turns:])


def build_user_prompt(
    question: str,
    sources: list[SourceHit],
    breakdown: ConfidenceBreakdown,
    prior_turns: list[ConversationTurn] | None = None,
) -> str:
    source_summary = "\n\n".join(
        format_source(i, source)
        for i, source in enumerate(sources[: settings.max_prompt_sources], start=1)
    )

    prompt = f"""Confidence Analysis and Search Results

{format_breakdown(breakdown)}

Search Results:
{source_summary}

Question: {question}"""

    turns = recent_turns(prior_turns)
    if turns:
        prompt += f"\n\nPrevious conversation context:\n{format_prior_turns(turns)}"

    prompt += (
        "\n\nBased on the above search results and confidence analysis, provide a response that "
        "matches the confidence level. Remember to be transparent about uncertainties and limitations."
    )
    return prompt
