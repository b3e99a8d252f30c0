"""Evidence pipeline: retrieve -> detect topic -> score -> synthesize."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from core.models import (
    AnswerResult,
    ConfidenceBreakdown,
    ConversationTurn,
    RetrievalBatch,
    SearchPreview,
)
from core.topics import DEFAULT_TOPIC, detect_topic
from evaluation.confidence import score as score_sources
from generation.generator import (
    AnswerGenerator,
    OpenAIGenerator,
    no_evidence_fallback,
    synthesize as synthesize_answer,
)
from retrieval.retriever import SourceRetriever
from retrieval.search_provider import GoogleSearchProvider

SEARCH_DEGRADED = "Web search was partly unavailable, so some relevant sources may be missing"


@dataclass
class PipelineState:
    """State passed through the pipeline stages for one question."""

    question: str = ""
    prior_turns: list[ConversationTurn] = field(default_factory=list)
    topic: str = DEFAULT_TOPIC
    batch: RetrievalBatch | None = None
    breakdown: ConfidenceBreakdown | None = None
    result: AnswerResult | None = None


class EvidencePipeline:
    """Answers questions with confidence calibrated to the retrieved evidence."""

    def __init__(
        self,
        retriever: SourceRetriever,
        generator: AnswerGenerator,
        logger: logging.Logger | None = None,
    ):
        self.retriever = retriever
        self.generator = generator
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_settings(cls, logger: logging.Logger | None = None) -> EvidencePipeline:
        """Build the Google search + OpenAI pipeline; raises ConfigurationError."""
        retriever = SourceRetriever(GoogleSearchProvider(), logger=logger)
        return cls(retriever, OpenAIGenerator(), logger=logger)

    def retrieve(self, state: PipelineState) -> PipelineState:
        state.batch = self.retriever.retrieve(state.question)
        self.logger.info(
            "Retrieved %d %s sources%s",
            len(state.batch.hits),
            state.batch.source_type,
            " (degraded)" if state.batch.degraded else "",
        )
        return state

    def classify_topic(self, state: PipelineState) -> PipelineState:
        state.topic = detect_topic(state.question)
        self.logger.info("Question classified as topic: %s", state.topic)
        return state

    def score(self, state: PipelineState) -> PipelineState:
        state.breakdown = score_sources(state.batch.hits, state.question, state.topic)
        return state

    def synthesize(self, state: PipelineState) -> PipelineState:
        if not state.batch.hits:
            self.logger.warning("No sources found for: %s", state.question[:50])
            state.result = no_evidence_fallback(state.question, topic=state.topic)
        else:
            state.result = synthesize_answer(
                state.question,
                state.batch.hits,
                state.breakdown,
                self.generator,
                prior_context=state.prior_turns,
                topic=state.topic,
                logger=self.logger,
            )

        if state.batch.degraded:
            answer = state.result.answer
            state.result = state.result.model_copy(
                update={
                    "answer": answer.model_copy(
                        update={"limitations": answer.limitations + [SEARCH_DEGRADED]}
                    )
                }
            )
        return state

    def evaluate_question(
        self,
        question: str,
        conversation_context: list[ConversationTurn] | str | None = None,
    ) -> AnswerResult:
        """Execute the full pipeline.

        Flow: retrieve → classify_topic → score → synthesize
        """
        if isinstance(conversation_context, str):
            prior_turns = [ConversationTurn(role="user", content=conversation_context)]
        else:
            prior_turns = list(conversation_context or [])

        state = PipelineState(question=question, prior_turns=prior_turns)
        state = self.retrieve(state)
        state = self.classify_topic(state)
        state = self.score(state)
        state = self.synthesize(state)
        return state.result

    def search_only(self, question: str) -> SearchPreview:
        """Retrieval and scoring without synthesis."""
        state = PipelineState(question=question)
        state = self.retrieve(state)
        state = self.classify_topic(state)
        state = self.score(state)
        return SearchPreview(
            sources=state.batch.hits,
            confidence=state.breakdown,
            topic=state.topic,
            source_type=state.batch.source_type,
            degraded=state.batch.degraded,
        )
