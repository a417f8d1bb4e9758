"""
Favorite answers saved by the user
"""
import logging
from typing import Callable, List, Optional
from sqlalchemy.orm import Session
from helpdesk.errors import FavoriteNotFoundError
from helpdesk.models import Favorite

logger = logging.getLogger(__name__)


class FavoritesService:
    """
    Add, list and remove favorites.

    on_change is called after every successful add or remove so a consumer
    can refresh whatever view shows the favorites.
    """

    def __init__(self, db: Session, on_change: Optional[Callable[[], None]] = None):
        self.db = db
        self.on_change = on_change

    def _changed(self):
        if self.on_change is not None:
            self.on_change()

    def add(self, question: str, answer: str) -> Favorite:
        """
        Save a question/answer pair. Duplicates are allowed.

        Args:
            question: Question as shown to the user
            answer: Answer as shown to the user

        Returns:
            The stored favorite
        """
        favorite = Favorite(question=question, answer=answer)
        self.db.add(favorite)
        self.db.commit()
        self.db.refresh(favorite)
        logger.info("[favorites] added id=%s", favorite.id)
        self._changed()
        return favorite

    def list(self) -> List[Favorite]:
        """All favorites, most recently saved first"""
        return (
            self.db.query(Favorite)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
            .all()
        )

    def remove(self, question: str, answer: str) -> int:
        """
        Remove one favorite matching question and answer.

        When the pair was saved more than once, only the most recent copy is
        removed, so adding and then removing a pair leaves the rest untouched.
        Returns the id of the removed row.

        Raises:
            FavoriteNotFoundError: no favorite has this question and answer
        """
        favorite = (
            self.db.query(Favorite)
            .filter(Favorite.question == question, Favorite.answer == answer)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
            .first()
        )
        if favorite is None:
            raise FavoriteNotFoundError("Favorite not found")
        return self._delete(favorite)

    def remove_by_id(self, favorite_id: int) -> int:
        """Remove a favorite by id and return that id"""
        favorite = self.db.get(Favorite, favorite_id)
        if favorite is None:
            raise FavoriteNotFoundError(f"Favorite {favorite_id} not found")
        return self._delete(favorite)

    def _delete(self, favorite: Favorite) -> int:
        favorite_id = favorite.id
        self.db.delete(favorite)
        self.db.commit()
        logger.info("[favorites] removed id=%s", favorite_id)
        self._changed()
        return favorite_id
