"""Tests for the ordered reply cascade."""

import pytest

from models.reply_action import (
    BookProfit,
    ExitCost,
    Follow,
    ReplyType,
    RevisedEntry,
    SlHit,
    UpdateSl,
    UpdateSlTarget,
    UpdateTarget,
    Wait,
)
from services.telegram_service.reply_parser import RULES, parse_reply


class TestDocumentedExamples:
    def test_wait_to_activate(self):
        assert parse_reply("WAIT TO ACTIVATE") == Wait()

    def test_bare_sl_is_hit(self):
        assert parse_reply("SL") == SlHit()

    def test_sl_with_value_is_update(self):
        assert parse_reply("SL 35") == UpdateSl(new_sl=35)

    def test_sl_and_target(self):
        assert parse_reply("SL 35 TARGET 45") == UpdateSlTarget(new_sl=35, new_target=45)


class TestBookProfit:
    @pytest.mark.parametrize(
        "text, price",
        [
            ("36.4, BOOK OR TRAIL", 36.4),
            ("36.4 BOOK OR TRAIL", 36.4),
            ("book or trail", None),
            ("  BOOK   OR  TRAIL ", None),
        ],
    )
    def test_book_or_trail(self, text, price):
        action = parse_reply(text)
        assert action == BookProfit(price=price)
        assert action.kind == ReplyType.BOOK_PROFIT

    def test_short_bare_price(self):
        assert parse_reply("36.4") == BookProfit(price=36.4)
        assert parse_reply("52, done") == BookProfit(price=52)

    def test_long_text_starting_with_number_is_not_profit(self):
        assert parse_reply("36 is the level to watch today") is None


class TestKeywords:
    @pytest.mark.parametrize("text", ["CLOSE NEAR COST", "close at cost now", "EXIT NEAR COST"])
    def test_exit_cost(self, text):
        assert parse_reply(text) == ExitCost()

    @pytest.mark.parametrize("text", ["wait", "WAIT TO ACTIVATE", "pls wait to activate"])
    def test_wait(self, text):
        assert parse_reply(text) == Wait()

    def test_wait_must_be_exact_when_short(self):
        assert parse_reply("WAIT A BIT") is None

    @pytest.mark.parametrize("text", ["FOLLOW", "follow it", "FOLLOW IT STRICTLY"])
    def test_follow(self, text):
        assert parse_reply(text) == Follow()

    @pytest.mark.parametrize("text", ["SL", "sl hit", "STOP LOSS", "STOPLOSS"])
    def test_sl_hit(self, text):
        assert parse_reply(text) == SlHit()


class TestRevisionsAndUpdates:
    @pytest.mark.parametrize(
        "text", ["BUY AT CMP 58, SL 53", "buy at cmp 58 sl 53", "BUY  AT CMP 58 ,SL 53"]
    )
    def test_revised_entry(self, text):
        assert parse_reply(text) == RevisedEntry(price=58, new_sl=53)

    @pytest.mark.parametrize(
        "text, value",
        [
            ("UPDATE SL 35", 35),
            ("TRAIL SL TO 41.5", 41.5),
            ("NEW SL 30", 30),
            ("SL TO 28", 28),
        ],
    )
    def test_update_sl(self, text, value):
        assert parse_reply(text) == UpdateSl(new_sl=value)

    @pytest.mark.parametrize(
        "text, value",
        [
            ("TARGET 45", 45),
            ("NEW TARGET 48.5", 48.5),
            ("UPDATE TARGET TO 50", 50),
            ("TGT 60", 60),
        ],
    )
    def test_update_target(self, text, value):
        assert parse_reply(text) == UpdateTarget(new_target=value)

    @pytest.mark.parametrize("text", ["TARGET 1 HIT", "TARGET 45 DONE", "TARGET 45 BOOK"])
    def test_target_done_words_block_update(self, text):
        assert not isinstance(parse_reply(text), UpdateTarget)

    @pytest.mark.parametrize(
        "text",
        [
            "SL 35 TARGET 45",
            "SL 35 TGT 45",
            "SL 35, TARGET 45",
            "TARGET 45 SL 35",
            "TGT 45 SL 35",
            "NEW SL 35 NEW TARGET 45",
            "SL TO 35 TARGET 45",
            "TARGET 45 SL TO 35",
            "UPDATE SL 35 AND TARGET 45",
            "trail sl to 35, new tgt 45",
        ],
    )
    def test_combined_in_either_order(self, text):
        assert parse_reply(text) == UpdateSlTarget(new_sl=35, new_target=45)


class TestCascade:
    def test_rule_order_is_fixed(self):
        assert [name for name, _ in RULES] == [
            "book_or_trail",
            "exit_cost",
            "wait",
            "follow",
            "sl_hit",
            "revised_entry",
            "update_sl",
            "update_target",
            "update_sl_target",
            "bare_price",
        ]

    def test_revised_entry_wins_over_sl_update(self):
        assert isinstance(parse_reply("BUY AT CMP 58, SL 53"), RevisedEntry)

    def test_exit_cost_wins_over_wait(self):
        assert parse_reply("CLOSE NEAR COST, WAIT TO ACTIVATE") == ExitCost()

    @pytest.mark.parametrize("text", ["", "   ", "good morning everyone", "T1 HIT", None])
    def test_unrecognized(self, text):
        assert parse_reply(text) is None
