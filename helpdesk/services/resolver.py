"""
Answer Resolver

Turns a user question into an answer, trying in order:
1. exact (case-insensitive, trimmed) match against stored FAQ questions
2. the top full-text hit, if its score is above the confidence threshold
3. the generation service

Every successful resolution is appended to the history table.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from helpdesk.models import FAQ
from helpdesk.services import history
from helpdesk.services.faq_index import FAQIndex, IndexHit
from helpdesk.services.generation import GenerationClient, build_prompt
from helpdesk.services.knowledge_base import load_entries

logger = logging.getLogger(__name__)

# Hits fetched when grounding context is enabled; otherwise only the top hit
CONTEXT_HITS = 3


class Provenance(str, Enum):
    """How an answer was produced"""

    EXACT_MATCH = "exact-match"
    INDEXED_MATCH = "indexed-match"
    GENERATED = "generated"


@dataclass
class QueryResult:
    question: str
    answer: str
    provenance: Provenance
    score: Optional[float] = None
    faq_id: Optional[int] = None
    history_recorded: bool = False


def normalize_question(text: str) -> str:
    return (text or "").strip().casefold()


def find_exact(entries: List[FAQ], question: str) -> Optional[FAQ]:
    """First entry whose question equals `question`, ignoring case and surrounding whitespace"""
    wanted = normalize_question(question)
    for entry in entries:
        if normalize_question(entry.question) == wanted:
            return entry
    return None


class AnswerResolver:
    """Resolve questions against the FAQ store, the full-text index and the generation service"""

    def __init__(
        self,
        index: FAQIndex,
        generator: GenerationClient,
        threshold: float = 0.3,
        use_context: bool = False,
    ):
        self.index = index
        self.generator = generator
        self.threshold = threshold
        self.use_context = use_context

    def resolve(self, db: Session, question: str) -> QueryResult:
        """
        Answer a question and record it in history.

        Args:
            db: Database session for this request
            question: User question; must not be blank

        Returns:
            QueryResult with the answer and its provenance

        Raises:
            ValueError: question is blank
            IndexQueryError: the full-text query failed
            GenerationError: the generation service failed
        """
        question = (question or "").strip()
        if not question:
            raise ValueError("Question must not be empty")

        logger.info("[resolver] IN  question=%r", question)
        result = self._answer(db, question)
        logger.info(
            "[resolver] OUT provenance=%s score=%s answer_len=%d",
            result.provenance.value, result.score, len(result.answer),
        )

        result.history_recorded = self._record(db, result)
        return result

    def _answer(self, db: Session, question: str) -> QueryResult:
        entries = load_entries(db)

        entry = find_exact(entries, question)
        if entry is not None:
            return QueryResult(
                question=question,
                answer=entry.answer,
                provenance=Provenance.EXACT_MATCH,
                faq_id=entry.id,
            )

        hits = self.index.search(question, limit=CONTEXT_HITS if self.use_context else 1)
        by_id = {str(e.id): e for e in entries}

        if hits and hits[0].score > self.threshold:
            top = hits[0]
            entry = by_id.get(top.doc_id)
            if entry is not None:
                return QueryResult(
                    question=question,
                    answer=entry.answer,
                    provenance=Provenance.INDEXED_MATCH,
                    score=top.score,
                    faq_id=entry.id,
                )
            logger.warning("[resolver] index hit %s has no FAQ entry, falling back to generation", top.doc_id)

        context = self._context(hits, by_id) if self.use_context else ""
        answer = self.generator.generate(build_prompt(question, context))
        return QueryResult(
            question=question,
            answer=answer,
            provenance=Provenance.GENERATED,
            score=hits[0].score if hits else None,
        )

    @staticmethod
    def _context(hits: List[IndexHit], by_id: dict) -> str:
        answers = []
        for hit in hits:
            entry = by_id.get(hit.doc_id)
            if entry is not None:
                answers.append(entry.answer)
        return "\n\n".join(answers)

    @staticmethod
    def _record(db: Session, result: QueryResult) -> bool:
        try:
            history.record(db, result.question, result.answer)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("[resolver] failed to save history")
            return False
        return True
