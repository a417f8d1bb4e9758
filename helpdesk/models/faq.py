from sqlalchemy import Column, Integer, Text
from helpdesk.database import Base


class FAQ(Base):
    """Question/answer pair of the searchable knowledge base"""
    __tablename__ = "faq"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    question = Column(Text)
    answer = Column(Text)

    def __repr__(self):
        return f"<FAQ id={self.id} question={self.question!r}>"
