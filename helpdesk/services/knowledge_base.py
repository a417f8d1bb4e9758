"""
FAQ knowledge base management
Every change to the faq table is mirrored into the full-text index
"""
import logging
from typing import List
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from helpdesk.errors import FAQNotFoundError, IndexUpdateError
from helpdesk.models import FAQ
from helpdesk.services.faq_index import FAQIndex

logger = logging.getLogger(__name__)


def _validate(question: str, answer: str) -> tuple:
    question = (question or "").strip()
    answer = (answer or "").strip()
    if not question or not answer:
        raise ValueError("Both question and answer are required")
    return question, answer


def load_entries(db: Session) -> List[FAQ]:
    """All FAQ entries in insertion order"""
    return db.query(FAQ).order_by(FAQ.id).all()


def list_entries(db: Session) -> List[FAQ]:
    """All FAQ entries, newest first"""
    return db.query(FAQ).order_by(FAQ.id.desc()).all()


def get_entry(db: Session, faq_id: int) -> FAQ:
    faq = db.get(FAQ, faq_id)
    if faq is None:
        raise FAQNotFoundError(f"FAQ entry {faq_id} not found")
    return faq


def create_entry(db: Session, index: FAQIndex, question: str, answer: str) -> FAQ:
    """
    Insert a new FAQ entry and index it.

    Args:
        db: Database session
        index: Full-text index to keep in sync
        question: Question text
        answer: Answer text

    Returns:
        The stored entry

    Raises:
        ValueError: question or answer is empty
        IndexUpdateError: the entry could not be indexed (nothing is stored)
        SQLAlchemyError: the store commit failed (nothing is stored and the
            index is put back to match the store)
    """
    question, answer = _validate(question, answer)
    faq = FAQ(question=question, answer=answer)
    db.add(faq)
    db.flush()
    _sync(db, index, faq.id, lambda: index.upsert(faq))
    db.refresh(faq)
    logger.info("[faq] created id=%s", faq.id)
    return faq


def update_entry(db: Session, index: FAQIndex, faq_id: int, question: str, answer: str) -> FAQ:
    """Replace an entry's question and answer, re-indexing it"""
    question, answer = _validate(question, answer)
    faq = get_entry(db, faq_id)
    faq.question = question
    faq.answer = answer
    db.flush()
    _sync(db, index, faq.id, lambda: index.upsert(faq))
    db.refresh(faq)
    logger.info("[faq] updated id=%s", faq_id)
    return faq


def delete_entry(db: Session, index: FAQIndex, faq_id: int) -> None:
    """Delete an entry and drop it from the index"""
    faq = get_entry(db, faq_id)
    db.delete(faq)
    db.flush()
    _sync(db, index, faq_id, lambda: index.delete(faq_id))
    logger.info("[faq] deleted id=%s", faq_id)


def reindex(db: Session, index: FAQIndex) -> int:
    """Rebuild the whole index from the store. Returns the number of entries indexed."""
    return index.rebuild(load_entries(db))


def _sync(db: Session, index: FAQIndex, faq_id: int, update_index) -> None:
    # Commit the store only once the index has accepted the change
    try:
        update_index()
    except IndexUpdateError:
        db.rollback()
        raise
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        _restore_index(db, index, faq_id)
        raise


def _restore_index(db: Session, index: FAQIndex, faq_id: int) -> None:
    """Put the entry's document back to match the store after a failed commit"""
    try:
        stored = db.get(FAQ, faq_id)
        if stored is None:
            index.delete(faq_id)
        else:
            index.upsert(stored)
    except (IndexUpdateError, SQLAlchemyError) as e:
        logger.error(
            "[faq] index out of sync for id=%s after failed commit: %s; run POST /faq/reindex",
            faq_id, e,
        )
