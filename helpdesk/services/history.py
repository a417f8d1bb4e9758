"""
Query history: one row appended per resolved question
"""
from typing import List
from sqlalchemy.orm import Session
from helpdesk.models import History


def record(db: Session, question: str, answer: str) -> History:
    """Append a history row and return it"""
    entry = History(question=question, answer=answer)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def recent(db: Session, limit: int = 10) -> List[History]:
    """Most recent history rows, newest first"""
    return (
        db.query(History)
        .order_by(History.date.desc(), History.id.desc())
        .limit(limit)
        .all()
    )
