from dataclasses import dataclass
from datetime import datetime

from gangesbot.services.answer_matcher import (
    OrderContext,
    count_keyword_matches,
    find_best_answer,
    format_date,
    is_order_question,
)


@dataclass
class Entry:
    question: str
    answer: str


CHARGING = Entry("How do I charge my scooter", "Plug in the charger and wait for the green light.")
WARRANTY = Entry("What does the warranty cover", "The battery and motor are covered for two years.")


def shipped_order(**overrides) -> OrderContext:
    fields = dict(
        order_number="GNG123",
        model="Ganges-2X",
        status="shipped",
        order_date=datetime(2026, 2, 1),
        expected_delivery=datetime(2026, 3, 5),
        tracking_number="TRK9",
    )
    fields.update(overrides)
    return OrderContext(**fields)


def test_charging_question_matches_charger_answer():
    assert find_best_answer("how do I charge my scooter battery", [CHARGING]) == CHARGING.answer


def test_keyword_count_is_case_insensitive_and_bidirectional():
    # "charger" contains "charge"; "scoot" is contained in "scooter"
    assert count_keyword_matches("CHARGER scoot", "charge scooter") == 2


def test_exactly_two_matches_is_not_enough():
    entry = Entry("alpha beta gamma delta", "answer")
    assert count_keyword_matches("alpha beta", entry.question) == 2
    assert find_best_answer("alpha beta", [entry]) is None


def test_three_matches_selects_entry():
    entry = Entry("alpha beta gamma delta", "answer")
    assert find_best_answer("alpha beta gamma", [entry]) == "answer"


def test_first_qualifying_entry_wins_over_better_later_entry():
    first = Entry("alpha beta gamma zzz", "first")
    better = Entry("alpha beta gamma delta", "better")
    assert find_best_answer("alpha beta gamma delta", [first, better]) == "first"


def test_empty_candidates_returns_none():
    assert find_best_answer("how do I charge my scooter", []) is None


def test_repeated_calls_are_deterministic():
    candidates = [WARRANTY, CHARGING]
    results = {find_best_answer("does the warranty cover my charger", candidates) for _ in range(5)}
    assert len(results) == 1


def test_common_words_match_without_stop_words():
    entry = Entry("how is the warranty", "warranty answer")
    assert find_best_answer("how is the weather", [entry]) == "warranty answer"


def test_stop_words_remove_common_word_matches():
    entry = Entry("how is the warranty", "warranty answer")
    assert find_best_answer("how is the weather", [entry], stop_words=("is", "the")) is None


def test_threshold_is_tunable():
    entry = Entry("alpha beta gamma delta", "answer")
    assert find_best_answer("alpha beta", [entry], threshold=1) == "answer"


def test_order_question_without_context_uses_keywords():
    entry = Entry("where is my order now", "Check the orders page.")
    assert find_best_answer("where is my order", [entry]) == "Check the orders page."


def test_where_is_my_order_reports_status():
    reply = find_best_answer("where is my order", [CHARGING], shipped_order())
    assert "GNG123" in reply
    assert "shipped" in reply


def test_status_branch_wins_over_tracking_branch():
    reply = find_best_answer("what is the status of my tracking", [], shipped_order())
    assert reply.startswith("Your order GNG123 (Ganges-2X) is currently shipped.")
    assert "The tracking number for order" not in reply


def test_status_reply_lists_delivery_and_tracking_when_known():
    reply = find_best_answer("order status please", [], shipped_order())
    assert reply == (
        "Your order GNG123 (Ganges-2X) is currently shipped. "
        "Expected delivery: March 5, 2026. Tracking number: TRK9."
    )


def test_status_reply_omits_missing_fields():
    reply = find_best_answer("order status", [], shipped_order(expected_delivery=None, tracking_number=None))
    assert reply == "Your order GNG123 (Ganges-2X) is currently shipped."


def test_delivery_question_reports_expected_date():
    reply = find_best_answer("when will my delivery arrive", [], shipped_order())
    assert "March 5, 2026" in reply


def test_delivery_question_without_date_reports_status_with_caveat():
    reply = find_best_answer("when is the delivery", [], shipped_order(status="processing", expected_delivery=None))
    assert "processing" in reply
    assert "will update" in reply


def test_tracking_question_reports_tracking_number():
    reply = find_best_answer("track my order", [], shipped_order())
    assert reply == "The tracking number for order GNG123 is TRK9."


def test_tracking_question_before_shipping():
    reply = find_best_answer("track my order", [], shipped_order(tracking_number=None))
    assert "once it has been shipped" in reply


def test_generic_order_question_returns_summary():
    reply = find_best_answer("order details please", [], shipped_order())
    assert reply == "Order GNG123: Ganges-2X, status shipped, ordered on February 1, 2026."


def test_non_order_question_with_context_uses_keywords():
    reply = find_best_answer("how do I charge my scooter", [CHARGING], shipped_order())
    assert reply == CHARGING.answer


def test_is_order_question():
    assert is_order_question("Can I TRACK it?")
    assert not is_order_question("how do I charge my scooter")


def test_format_date_drops_leading_zero():
    assert format_date(datetime(2026, 10, 7)) == "October 7, 2026"
