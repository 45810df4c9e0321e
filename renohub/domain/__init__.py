from .errors import BackendError, translate_error, to_backend_error
from .models import (
    Category,
    Comment,
    InspirationFilters,
    InspirationItem,
    InspirationPage,
    InspirationProvider,
    InspirationStats,
    InteractionFlags,
    LikeTarget,
    Message,
    Post,
    SortOption,
    UserProfile,
)
from .result import Result, ResultError


__all__ = [
    # errors.py
    "BackendError",
    "translate_error",
    "to_backend_error",
    # models.py
    "Category",
    "Comment",
    "InspirationFilters",
    "InspirationItem",
    "InspirationPage",
    "InspirationProvider",
    "InspirationStats",
    "InteractionFlags",
    "LikeTarget",
    "Message",
    "Post",
    "SortOption",
    "UserProfile",
    # result.py
    "Result",
    "ResultError",
]
