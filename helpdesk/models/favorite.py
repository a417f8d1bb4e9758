from sqlalchemy import Column, Integer, DateTime, Text, func
from helpdesk.database import Base


class Favorite(Base):
    """Answer saved by the user; stored by value, duplicates allowed"""
    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    question = Column(Text)
    answer = Column(Text)
    created_at = Column(DateTime, default=func.now(), server_default=func.now())
