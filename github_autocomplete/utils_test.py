"""Unit tests for utils module."""

from .utils import format_countdown, highlight_segments


def describe_highlight_segments():
    def it_marks_case_insensitive_matches():
        assert highlight_segments("facebook/React", "react") == [
            ("facebook/", False),
            ("React", True),
        ]

    def it_marks_every_occurrence():
        assert highlight_segments("abcab", "ab") == [("ab", True), ("c", False), ("ab", True)]

    def it_treats_query_literally():
        assert highlight_segments("c++ tools", "c++") == [("c++", True), (" tools", False)]

    def it_ignores_surrounding_whitespace_in_query():
        assert highlight_segments("vuejs", "  vue ") == [("vue", True), ("js", False)]

    def it_returns_whole_text_without_query():
        assert highlight_segments("react", "") == [("react", False)]

    def it_returns_whole_text_without_match():
        assert highlight_segments("react", "xyz") == [("react", False)]


def describe_format_countdown():
    def it_formats_minutes_and_seconds():
        assert format_countdown(75) == "1:15"

    def it_pads_seconds():
        assert format_countdown(5) == "0:05"

    def it_clamps_negative_values():
        assert format_countdown(-3) == "0:00"
