from helpdesk.models.faq import FAQ
from helpdesk.models.favorite import Favorite
from helpdesk.models.history import History

__all__ = ["FAQ", "Favorite", "History"]
