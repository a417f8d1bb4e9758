from sqlalchemy import Column, Integer, DateTime, Text, func
from helpdesk.database import Base


class History(Base):
    """One row per resolved question (append-only)"""
    __tablename__ = "history"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    question = Column(Text)
    answer = Column(Text)
    date = Column(DateTime, default=func.now(), server_default=func.now(), index=True)
