from .feed_service import FeedService
from .feed_store import AsyncState, FeedStore, FetchStatus, FetchTicket, InteractionPatch
from .realtime_consumer import RealtimeFeedConsumer


__all__ = [
    "AsyncState",
    "FeedService",
    "FeedStore",
    "FetchStatus",
    "FetchTicket",
    "InteractionPatch",
    "RealtimeFeedConsumer",
]
