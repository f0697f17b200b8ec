"""Data models and constants for the autocomplete engine."""

from dataclasses import asdict, dataclass, field
from datetime import timedelta
from typing import Literal

CACHE_TTL = timedelta(hours=24)
MAX_RESULTS = 50  # combined repositories + users shown in the dropdown
REPO_PAGE_SIZE = 40
SPARSE_REPO_THRESHOLD = 8  # fewer repositories than this triggers a user search
SHORT_QUERY_LENGTH = 4  # queries shorter than this always include a user search

UNAUTHENTICATED_LIMIT = 10  # search requests per minute without a token
AUTHENTICATED_LIMIT = 30
SEARCH_WINDOW_SECONDS = 60

ResultType = Literal["user", "repository"]


@dataclass(frozen=True)
class ResultItem:
    """A single user or repository shown in the dropdown."""

    id: str
    name: str
    type: ResultType
    url: str
    avatar_url: str
    description: str | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if data["description"] is None:
            del data["description"]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ResultItem":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            type=data["type"],
            url=data["url"],
            avatar_url=data["avatar_url"],
            description=data.get("description"),
        )

    @classmethod
    def from_repository(cls, repo: dict) -> "ResultItem":
        owner = repo.get("owner") or {}
        return cls(
            id=f"repo-{repo['id']}",
            name=repo["name"],
            type="repository",
            url=repo["html_url"],
            avatar_url=owner.get("avatar_url", ""),
            description=repo.get("description"),
        )

    @classmethod
    def from_user(cls, user: dict) -> "ResultItem":
        return cls(
            id=f"user-{user['id']}",
            name=user["login"],
            type="user",
            url=user["html_url"],
            avatar_url=user.get("avatar_url", ""),
        )


@dataclass(frozen=True)
class RateLimitSnapshot:
    """Quota state as last observed or estimated."""

    limit: int = UNAUTHENTICATED_LIMIT
    remaining: int = UNAUTHENTICATED_LIMIT
    reset: int = 0  # epoch seconds, 0 when unknown
    reset_time_string: str = ""
    is_search_api: bool = True
    exceeded: bool = False

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "RateLimitSnapshot":
        return cls(
            limit=int(data["limit"]),
            remaining=int(data["remaining"]),
            reset=int(data.get("reset", 0)),
            reset_time_string=str(data.get("reset_time_string", "")),
            is_search_api=bool(data.get("is_search_api", True)),
            exceeded=bool(data.get("exceeded", False)),
        )


@dataclass
class SearchResponse:
    """Body of a GitHub search endpoint response."""

    total_count: int
    incomplete_results: bool
    items: list[dict] = field(default_factory=list)

    @classmethod
    def from_json(cls, body) -> "SearchResponse":
        if not isinstance(body, dict):
            raise ValueError(f"Expected a JSON object, got {type(body).__name__}")
        items = body.get("items") or []
        if not isinstance(items, list):
            raise ValueError(f"Expected a list of items, got {type(items).__name__}")
        return cls(
            total_count=body.get("total_count", 0),
            incomplete_results=body.get("incomplete_results", False),
            items=items,
        )
