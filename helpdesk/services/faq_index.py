"""
Full-text index over FAQ entries.

The index lives in its own SQLite file as an FTS5 virtual table, separate from
the relational store. Each document is one FAQ entry: the entry id (as a
string) plus its question and answer text.

FTS5 finds the candidate documents and its bm25 rank breaks ties, but bm25
collapses to ~0 on small corpora, so the score of a hit is its query
coverage instead: the share of the query's meaningful words (stop words
removed) that occur in the document. 1.0 means every word matched.
"""
import logging
import re
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Set, Union

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from helpdesk.errors import IndexOpenError, IndexQueryError, IndexUpdateError

logger = logging.getLogger(__name__)

INDEX_TABLE = "faq_fts"

# Candidates taken from FTS5 before re-scoring by coverage
CANDIDATE_POOL = 50

STOP_WORDS: Set[str] = {
    'a', 'an', 'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for',
    'of', 'with', 'by', 'from', 'as', 'is', 'was', 'are', 'were', 'been',
    'be', 'have', 'has', 'had', 'do', 'does', 'did', 'will', 'would', 'could',
    'should', 'may', 'might', 'must', 'shall', 'can', 'i', 'you', 'he', 'she',
    'it', 'we', 'they', 'me', 'my', 'your', 'our', 'this', 'that', 'these',
    'those', 'what', 'which', 'who', 'how', 'why', 'when', 'where', 'not',
    'no', 'if', 'so', 'there', 'any', 'some', 'about', 'into', 'than',
}

_CREATE_SQL = f"""
CREATE VIRTUAL TABLE IF NOT EXISTS {INDEX_TABLE} USING fts5(
  faq_id UNINDEXED,
  question,
  answer,
  tokenize = 'unicode61'
)
"""
_INSERT_SQL = text(
    f"INSERT INTO {INDEX_TABLE} (faq_id, question, answer) VALUES (:faq_id, :question, :answer)"
)
_DELETE_SQL = text(f"DELETE FROM {INDEX_TABLE} WHERE faq_id = :faq_id")
_SEARCH_SQL = text(
    f"""
    SELECT faq_id, question, answer, bm25({INDEX_TABLE}) AS bm25_score
    FROM {INDEX_TABLE}
    WHERE {INDEX_TABLE} MATCH :match
    ORDER BY bm25_score
    LIMIT :limit
    """
)

# Same token boundaries as the unicode61 tokenizer: letters and digits only
_WORD_RE = re.compile(r"[^\W_]+")


@dataclass(frozen=True)
class IndexHit:
    """One ranked search result"""

    doc_id: str
    score: float


def extract_terms(text_: str) -> List[str]:
    """Distinct lower-cased, diacritic-free words of a text, stop words removed, in order."""
    decomposed = unicodedata.normalize("NFKD", text_ or "")
    plain = "".join(c for c in decomposed if not unicodedata.combining(c))
    terms = []
    for word in _WORD_RE.findall(plain.casefold()):
        if word not in STOP_WORDS and word not in terms:
            terms.append(word)
    return terms


def coverage_score(query_terms: List[str], document_text: str) -> float:
    """Share of query_terms present in document_text, from 0.0 to 1.0."""
    if not query_terms:
        return 0.0
    document_terms = set(extract_terms(document_text))
    matched = sum(1 for term in query_terms if term in document_terms)
    return matched / len(query_terms)


def build_match_query(query: str) -> str:
    """
    Turn free text into an FTS5 MATCH expression.

    Every meaningful word becomes a quoted term and terms are OR-ed, so
    punctuation in the user's question (e.g. a trailing "?") never reaches
    the FTS5 query parser. Returns "" when nothing is left to search for.
    """
    return " OR ".join(f'"{term}"' for term in extract_terms(query))


def _document(entry) -> dict:
    return {
        "faq_id": str(entry.id),
        "question": entry.question or "",
        "answer": entry.answer or "",
    }


class FAQIndex:
    """FTS5-backed index of FAQ entries"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.engine = create_engine(
            f"sqlite:///{self.path}",
            connect_args={"check_same_thread": False},
        )

    @classmethod
    def open_or_create(cls, path: Union[str, Path], entries: Iterable) -> "FAQIndex":
        """
        Create a fresh index from entries, or open the existing one.

        An index file that already exists is opened as-is; its documents are
        not compared with or refreshed from entries. Use rebuild() for that.

        Raises:
            IndexOpenError: the index cannot be created, or the existing file
                is not a usable index
        """
        index = cls(path)

        if index.path.exists():
            try:
                documents = index.count()
            except IndexQueryError as e:
                index.close()
                raise IndexOpenError(f"Cannot open index at {index.path}: {e.message}") from e
            logger.info("[index] opened %s (%d documents)", index.path, documents)
            return index

        try:
            index.path.parent.mkdir(parents=True, exist_ok=True)
            with index.engine.begin() as conn:
                conn.execute(text(_CREATE_SQL))
                documents = [_document(entry) for entry in entries]
                if documents:
                    conn.execute(_INSERT_SQL, documents)
        except (SQLAlchemyError, OSError) as e:
            index.close()
            raise IndexOpenError(f"Cannot create index at {index.path}: {e}") from e

        logger.info("[index] created %s (%d documents)", index.path, len(documents))
        return index

    def search(self, query: str, limit: int = 1) -> List[IndexHit]:
        """
        Return up to `limit` hits for a free-text query, best first.

        Hits are ordered by coverage score, then by bm25 rank.

        Raises:
            IndexQueryError: the full-text engine failed
        """
        match = build_match_query(query)
        if not match:
            return []
        terms = extract_terms(query)

        try:
            with self.engine.connect() as conn:
                rows = conn.execute(
                    _SEARCH_SQL, {"match": match, "limit": max(limit, CANDIDATE_POOL)}
                ).all()
        except SQLAlchemyError as e:
            raise IndexQueryError(f"Full-text search failed: {e}") from e

        # rows arrive in bm25 order and sorted() is stable
        hits = sorted(
            (
                IndexHit(
                    doc_id=str(row.faq_id),
                    score=coverage_score(terms, f"{row.question} {row.answer}"),
                )
                for row in rows
            ),
            key=lambda hit: hit.score,
            reverse=True,
        )
        logger.debug("[index] %r -> %s", query, [(h.doc_id, round(h.score, 3)) for h in hits[:limit]])
        return hits[:limit]

    def upsert(self, entry) -> None:
        """Index an entry, replacing any previous document with the same id."""
        document = _document(entry)
        try:
            with self.engine.begin() as conn:
                conn.execute(_DELETE_SQL, {"faq_id": document["faq_id"]})
                conn.execute(_INSERT_SQL, document)
        except SQLAlchemyError as e:
            raise IndexUpdateError(f"Failed to index FAQ {entry.id}: {e}") from e
        logger.debug("[index] upserted faq_id=%s", document["faq_id"])

    def delete(self, faq_id: int) -> None:
        """Remove an entry's document; a missing document is not an error."""
        try:
            with self.engine.begin() as conn:
                conn.execute(_DELETE_SQL, {"faq_id": str(faq_id)})
        except SQLAlchemyError as e:
            raise IndexUpdateError(f"Failed to remove FAQ {faq_id} from index: {e}") from e
        logger.debug("[index] deleted faq_id=%s", faq_id)

    def rebuild(self, entries: Iterable) -> int:
        """Replace every document with the given entries. Returns the document count."""
        documents = [_document(entry) for entry in entries]
        try:
            with self.engine.begin() as conn:
                conn.execute(text(f"DELETE FROM {INDEX_TABLE}"))
                if documents:
                    conn.execute(_INSERT_SQL, documents)
        except SQLAlchemyError as e:
            raise IndexUpdateError(f"Failed to rebuild index: {e}") from e
        logger.info("[index] rebuilt with %d documents", len(documents))
        return len(documents)

    def count(self) -> int:
        try:
            with self.engine.connect() as conn:
                return conn.execute(text(f"SELECT count(*) FROM {INDEX_TABLE}")).scalar_one()
        except SQLAlchemyError as e:
            raise IndexQueryError(f"Failed to read index: {e}") from e

    def close(self) -> None:
        self.engine.dispose()
