from .forum import ForumRepository
from .inspiration import InspirationRepository
from .messages import MessageRepository
from .portfolios import PortfolioRepository
from .profiles import ProfileRepository
from .providers import ProviderRepository


__all__ = [
    "ForumRepository",
    "InspirationRepository",
    "MessageRepository",
    "PortfolioRepository",
    "ProfileRepository",
    "ProviderRepository",
]
