"""Search GitHub users and repositories as you type.

Debounces keystrokes, serves repeats from a 24h cache, tracks the search
quota across restarts, and falls back to canned results when GitHub is out of
reach.
"""

from .cli import main
from .models import RateLimitSnapshot, ResultItem
from .orchestrator import SearchOrchestrator, create_orchestrator
from .rate_limit import RateLimitTracker, get_tracker
from .session import SearchSession

__all__ = [
    "main",
    "RateLimitSnapshot",
    "ResultItem",
    "SearchOrchestrator",
    "create_orchestrator",
    "RateLimitTracker",
    "get_tracker",
    "SearchSession",
]

if __name__ == "__main__":
    main()
