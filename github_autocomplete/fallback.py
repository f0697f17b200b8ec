"""Canned results for popular queries, served when GitHub cannot be reached."""

from .models import ResultItem

FALLBACK_RESULTS: dict[str, list[ResultItem]] = {
    "react": [
        ResultItem(
            id="repo-10270250",
            name="react",
            type="repository",
            url="https://github.com/facebook/react",
            avatar_url="https://avatars.githubusercontent.com/u/69631?v=4",
            description="A declarative, efficient, and flexible JavaScript library for building user interfaces.",
        ),
        ResultItem(
            id="repo-70107786",
            name="react-native",
            type="repository",
            url="https://github.com/facebook/react-native",
            avatar_url="https://avatars.githubusercontent.com/u/69631?v=4",
            description="A framework for building native applications using React.",
        ),
        ResultItem(
            id="user-1566403",
            name="react",
            type="user",
            url="https://github.com/react",
            avatar_url="https://avatars.githubusercontent.com/u/1566403?v=4",
        ),
    ],
    "javascript": [
        ResultItem(
            id="repo-1062897",
            name="javascript",
            type="repository",
            url="https://github.com/airbnb/javascript",
            avatar_url="https://avatars.githubusercontent.com/u/698437?v=4",
            description="JavaScript Style Guide",
        ),
        ResultItem(
            id="user-1700322",
            name="javascript",
            type="user",
            url="https://github.com/javascript",
            avatar_url="https://avatars.githubusercontent.com/u/1700322?v=4",
        ),
    ],
}


class FallbackCatalog:
    """Static degrade path. Lookups never raise and never touch the network."""

    def __init__(self, entries: dict[str, list[ResultItem]] | None = None):
        self.entries = FALLBACK_RESULTS if entries is None else entries

    def get(self, query: str) -> list[ResultItem]:
        """Exact match first, then the first key contained in or containing the query."""
        query = query.strip().lower()
        if not query:
            return []
        if query in self.entries:
            return list(self.entries[query])
        for key, results in self.entries.items():
            if key in query or query in key:
                return list(results)
        return []
