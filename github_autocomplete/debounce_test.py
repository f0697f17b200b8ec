"""Unit tests for the typing-aware debouncer.

These run on a real event loop with short delays (delay 200ms, quiet 50ms).
"""

import asyncio

from .debounce import TypingAwareDebouncer

DELAY = 0.2
QUIET = 0.05


def _run(coro):
    return asyncio.run(coro)


def describe_TypingAwareDebouncer():
    def it_commits_once_after_quiet_period():
        async def scenario():
            commits = []
            debouncer = TypingAwareDebouncer(commits.append, delay=DELAY, quiet=QUIET)
            debouncer.push("rea")
            await asyncio.sleep(QUIET + 0.05)
            first = list(commits)
            await asyncio.sleep(DELAY + 0.1)
            return first, commits

        first, commits = _run(scenario())
        assert first == ["rea"]
        assert commits == ["rea"]

    def it_commits_a_short_burst_exactly_once_with_latest_value():
        async def scenario():
            commits = []
            debouncer = TypingAwareDebouncer(commits.append, delay=DELAY, quiet=QUIET)
            for value in ("r", "re", "rea", "reac", "react"):
                debouncer.push(value)
                await asyncio.sleep(0.005)
            await asyncio.sleep(DELAY + 0.2)
            return commits

        assert _run(scenario()) == ["react"]

    def it_commits_at_least_once_per_delay_while_typing():
        async def scenario():
            loop = asyncio.get_running_loop()
            start = loop.time()
            times = []
            values = []

            def on_commit(value):
                times.append(loop.time())
                values.append(value)

            debouncer = TypingAwareDebouncer(on_commit, delay=DELAY, quiet=QUIET)
            text = ""
            while loop.time() - start < 0.9:
                text += "a"
                debouncer.push(text)
                await asyncio.sleep(0.02)
            typing_ended = loop.time()
            await asyncio.sleep(QUIET + 0.1)
            return start, typing_ended, times, values, text

        start, typing_ended, times, values, text = _run(scenario())
        during_typing = [t for t in times if t <= typing_ended]
        assert len(during_typing) >= 3
        gaps = [b - a for a, b in zip([start] + during_typing, during_typing)]
        assert max(gaps) <= DELAY + 0.1
        # The trailing pause flushes the final value
        assert values[-1] == text

    def it_waits_for_quiet_before_committing_mid_burst():
        async def scenario():
            commits = []
            debouncer = TypingAwareDebouncer(commits.append, delay=DELAY, quiet=QUIET)
            debouncer.push("re")
            await asyncio.sleep(QUIET / 2)
            debouncer.push("rea")
            await asyncio.sleep(QUIET / 2)
            mid_burst = list(commits)
            await asyncio.sleep(QUIET + 0.05)
            return mid_burst, commits

        mid_burst, commits = _run(scenario())
        assert mid_burst == []
        assert commits == ["rea"]

    def it_drops_pending_value_on_cancel():
        async def scenario():
            commits = []
            debouncer = TypingAwareDebouncer(commits.append, delay=DELAY, quiet=QUIET)
            debouncer.push("react")
            debouncer.cancel()
            await asyncio.sleep(DELAY + 0.1)
            return commits

        assert _run(scenario()) == []
