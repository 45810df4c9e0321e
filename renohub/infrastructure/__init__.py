from .backend import BackendConnection
from .realtime import InspirationRealtime
from .repositories import (
    ForumRepository,
    InspirationRepository,
    MessageRepository,
    PortfolioRepository,
    ProfileRepository,
    ProviderRepository,
)
from .storage import MediaStorage


__all__ = [
    "BackendConnection",
    "InspirationRealtime",
    "MediaStorage",
    "ForumRepository",
    "InspirationRepository",
    "MessageRepository",
    "PortfolioRepository",
    "ProfileRepository",
    "ProviderRepository",
]
