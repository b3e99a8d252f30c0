#!/usr/bin/env python3
"""CLI for honest-qa: ask questions, preview sources and confidence."""

import argparse
import json
import logging
import sys

from core.config import ConfigurationError


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )


def build_pipeline():
    from agent.pipeline import EvidencePipeline

    try:
        return EvidencePipeline.from_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)


def cmd_ask(args: argparse.Namespace) -> None:
    """Answer a question with calibrated confidence."""
    pipeline = build_pipeline()
    result = pipeline.evaluate_question(args.question, args.context)

    if args.json:
        print(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    answer = result.answer
    print(f"Query: {args.question}")
    if not result.success:
        print(f"\n(Generation failed: {result.error})")
    print(f"\nAnswer: {answer.main_response}")
    print(f"\nConfidence: {answer.confidence}% ({answer.confidence_level})")

    if answer.factors is not None:
        for label, factor in (
            ("Source quality", answer.factors.source_quality),
            ("Source agreement", answer.factors.source_agreement),
            ("Recency", answer.factors.recency_score),
            ("Certainty", answer.factors.certainty_score),
        ):
            print(f"  {label}: {factor.score} - {factor.details}")

    if answer.sources:
        print(f"\nSources ({len(answer.sources)}):")
        for src in answer.sources:
            print(f"  {src.position}. [{src.quality_tier.value}] {src.title} ({src.url})")

    for heading, items in (
        ("Biases", answer.biases),
        ("Controversies", answer.controversies),
        ("Limitations", answer.limitations),
    ):
        if items:
            print(f"\n{heading}:")
            for item in items:
                print(f"  - {item}")


def cmd_search(args: argparse.Namespace) -> None:
    """Retrieve and score sources without generating an answer."""
    pipeline = build_pipeline()
    preview = pipeline.search_only(args.question)

    if args.json:
        print(json.dumps(preview.model_dump(mode="json"), indent=2))
        return

    print(f"Topic: {preview.topic}")
    print(f"Confidence: {preview.confidence.overall}% ({preview.confidence.level})")
    print(f"\nSources ({len(preview.sources)}, {preview.source_type}):")
    for src in preview.sources:
        published = src.published_at.date().isoformat() if src.published_at else "undated"
        print(
            f"  {src.position}. [{src.quality_tier.value}/{src.category.value}] "
            f"{src.domain} - {src.title} ({published})"
        )


def cmd_topic(args: argparse.Namespace) -> None:
    """Show the detected topic and its stability."""
    from core.topics import detect_topic, topic_stability

    topic = detect_topic(args.question)
    print(f"{topic} (stability {topic_stability(topic):.2f})")


def main() -> None:
    parser = argparse.ArgumentParser(description="honest-qa evidence pipeline CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # ask
    p_ask = subparsers.add_parser("ask", help="Ask a question")
    p_ask.add_argument("question", help="Question to ask")
    p_ask.add_argument("--context", default=None, help="Previous conversation context")
    p_ask.add_argument("--json", action="store_true", help="Print the result as JSON")

    # search
    p_search = subparsers.add_parser("search", help="Preview sources and confidence")
    p_search.add_argument("question", help="Question to search for")
    p_search.add_argument("--json", action="store_true", help="Print the preview as JSON")

    # topic
    p_topic = subparsers.add_parser("topic", help="Detect a question's topic")
    p_topic.add_argument("question", help="Question to classify")

    args = parser.parse_args()
    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "ask": cmd_ask,
        "search": cmd_search,
        "topic": cmd_topic,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
