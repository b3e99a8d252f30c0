"""Keyword topic detection and per-topic information stability."""

from __future__ import annotations

import re

DEFAULT_TOPIC = "general"
DEFAULT_STABILITY = 0.5

# How slowly information on a topic goes stale (1.0 = never)
TOPIC_STABILITY: dict[str, float] = {
    "mathematics": 0.95,
    "history": 0.90,
    "geography": 0.85,
    "basic_science": 0.85,
    "medicine": 0.70,
    "law": 0.65,
    "technology": 0.60,
    "economics": 0.60,
    "ai_ml": 0.50,
    "politics": 0.40,
    "cryptocurrency": 0.35,
    "current_events": 0.30,
    "stock_market": 0.30,
}

# Evaluated in order, first match wins
TOPIC_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (topic, re.compile(pattern, re.IGNORECASE))
    for topic, pattern in (
        ("mathematics", r"\b(math|calculus|algebra|geometry|equation)\b"),
        ("history", r"\b(history|historical|ancient|war|revolution)\b"),
        ("geography", r"\b(geography|country|capital|continent|ocean)\b"),
        ("basic_science", r"\b(physics|chemistry|biology|science)\b"),
        ("medicine", r"\b(medicine|health|disease|treatment|diagnosis)\b"),
        ("technology", r"\b(technology|software|computer|ai|machine learning)\b"),
        ("law", r"\b(law|legal|court|regulation|statute)\b"),
        ("economics", r"\b(economy|economics|inflation|gdp|market)\b"),
        ("current_events", r"\b(news|today|yesterday|current|latest)\b"),
        ("politics", r"\b(politics|election|government|policy)\b"),
        ("cryptocurrency", r"\b(crypto|bitcoin|blockchain|defi)\b"),
        ("stock_market", r"\b(stock|trading|investment|portfolio)\b"),
        ("ai_ml", r"\b(artificial intelligence|ml|neural|deep learning)\b"),
    )
)


def detect_topic(question: str) -> str:
    """Classify a question into a coarse topic label."""
    for topic, pattern in TOPIC_PATTERNS:
        if pattern.search(question):
            return topic
    return DEFAULT_TOPIC


def topic_stability(topic: str) -> float:
    return TOPIC_STABILITY.get(topic, DEFAULT_STABILITY)
