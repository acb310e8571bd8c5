from __future__ import annotations

import allure

from tweet_digest.jobs.models import TagOption
from tweet_digest.tags import apply_suggestion, format_tag_list, parse_tag_list, suggestions

pytestmark = [
    allure.epic("Tag Editing"),
    allure.feature("Suggestions"),
]


def test_parse_tag_list_splits_on_all_delimiters_and_drops_blanks() -> None:
    assert parse_tag_list("btc, eth，sol\n\n , ") == ["btc", "eth", "sol"]
    assert parse_tag_list("") == []


def test_format_tag_list_joins_with_comma_space() -> None:
    assert format_tag_list(["a", "b"]) == "a, b"


def test_suggestions_match_last_token_and_exclude_selected() -> None:
    options = [TagOption(tag="eth"), TagOption(tag="btc"), TagOption(tag="etf")]

    assert suggestions("btc, et", options) == ["eth", "etf"]


def test_suggestions_are_case_insensitive_and_accept_plain_strings() -> None:
    assert suggestions("BTC, E", ["eth", "Btc", "ETF"]) == ["eth", "ETF"]


def test_suggestions_with_empty_last_token_offer_every_unselected_tag() -> None:
    assert suggestions("btc, ", ["eth", "btc", "sol"]) == ["eth", "sol"]


def test_suggestions_respect_limit() -> None:
    options = [f"tag-{index}" for index in range(40)]

    assert len(suggestions("", options)) == 15
    assert suggestions("tag", options, limit=3) == ["tag-0", "tag-1", "tag-2"]


def test_apply_suggestion_replaces_partial_token() -> None:
    assert apply_suggestion("btc, et", "eth") == "btc, eth"
    assert apply_suggestion("", "eth") == "eth"


def test_apply_suggestion_twice_yields_unique_ordered_tokens() -> None:
    once = apply_suggestion("a, b,", "b")

    assert once == "a, b"
    assert apply_suggestion(once, "c") == "a, c"


def test_apply_suggestion_dedupes_case_insensitively_keeping_first() -> None:
    assert apply_suggestion("ETH, btc，x", "eth") == "ETH, btc"
