"""
Test doubles and factories shared by the test modules
"""
from collections import defaultdict, deque
from types import SimpleNamespace
from typing import Any, Deque, Dict, List, Optional

from postgrest.exceptions import APIError

from renohub.domain.models import InspirationItem, InspirationProvider, InspirationStats


class FakeQuery:
    """Records chained PostgREST builder calls; ``execute`` returns a canned response"""

    def __init__(self, backend: "FakeBackend", name: str, params: Optional[Dict[str, Any]] = None):
        self.backend = backend
        self.name = name
        self.params = params
        self.calls: List[tuple] = []

    def __getattr__(self, method: str):
        if method.startswith("_"):
            raise AttributeError(method)

        def record(*args, **kwargs):
            self.calls.append((method, args, kwargs))
            return self
        return record

    def args_of(self, method: str) -> List[tuple]:
        return [args for name, args, _ in self.calls if name == method]

    def kwargs_of(self, method: str) -> List[dict]:
        return [kwargs for name, _, kwargs in self.calls if name == method]

    def called(self, method: str) -> bool:
        return any(name == method for name, _, _ in self.calls)

    async def execute(self):
        self.backend.executed.append(self)
        return self.backend.next_response(self.name)


class FakeBackend:
    """
    Stands in for BackendConnection.

    Responses are queued per table or RPC name; the last queued response
    for a name is reused once the queue is down to it.
    """

    def __init__(self):
        self.responses: Dict[str, Deque[Any]] = defaultdict(deque)
        self.queries: List[FakeQuery] = []
        self.executed: List[FakeQuery] = []
        self.storage = None

    def respond(self, name: str, data: Any = None, count: Optional[int] = None):
        self.responses[name].append(SimpleNamespace(data=data, count=count))

    def fail(self, name: str, message: str = "boom", code: Optional[str] = None):
        self.responses[name].append(api_error(message, code))

    def next_response(self, name: str):
        queue = self.responses.get(name)
        if not queue:
            return SimpleNamespace(data=[], count=None)
        response = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(response, BaseException):
            raise response
        return response

    def table(self, name: str) -> FakeQuery:
        query = FakeQuery(self, name)
        self.queries.append(query)
        return query

    def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> FakeQuery:
        query = FakeQuery(self, function, params or {})
        self.queries.append(query)
        return query

    def queries_for(self, name: str) -> List[FakeQuery]:
        return [query for query in self.queries if query.name == name]

    def executed_for(self, name: str) -> List[FakeQuery]:
        return [query for query in self.executed if query.name == name]


def api_error(message: str = "boom", code: Optional[str] = None) -> APIError:
    return APIError({"message": message, "code": code, "details": None, "hint": None})


def feed_row(row_id: str, provider_id: str = "prov-1", **overrides) -> Dict[str, Any]:
    row = {
        "id": row_id,
        "provider_id": provider_id,
        "title": f"Project {row_id}",
        "description": "Kitchen renovation",
        "image_url": f"https://cdn.example.com/{row_id}.jpg",
        "gallery_images": None,
        "project_type": "kitchen",
        "location": "Central",
        "price_min": 1000,
        "price_max": 5000,
        "currency_code": "HKD",
        "tags": ["modern"],
        "pinned": False,
        "is_featured": False,
        "pin_rank": 0,
        "created_at": "2024-03-01T10:00:00Z",
        "collect_count": 0,
        "like_count": 0,
        "company_name": "Acme Reno",
        "username": "acme",
        "logo_url": None,
        "avatar_url": None,
        "overall_rating": 4.5,
        "total_reviews": 12,
        "is_sponsored": False,
        "is_verified": True,
    }
    row.update(overrides)
    return row


def make_item(
    item_id: str,
    provider_id: str = "prov-1",
    collects: int = 0,
    likes: int = 0,
    is_collected: bool = False,
    is_liked: bool = False,
    is_following: bool = False,
    **overrides,
) -> InspirationItem:
    fields = dict(
        id=item_id,
        provider_id=provider_id,
        title=f"Project {item_id}",
        hero_image=f"https://cdn.example.com/{item_id}.jpg",
        provider=InspirationProvider(id=provider_id, company_name="Acme Reno",
                                     rating=4.5, is_following=is_following),
        project_type="kitchen",
        stats=InspirationStats(collects=collects, likes=likes),
        is_collected=is_collected,
        is_liked=is_liked,
    )
    fields.update(overrides)
    return InspirationItem(**fields)
