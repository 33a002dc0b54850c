"""
Answer Matcher
Maps a free-text customer question to one predefined answer.

Two paths:
  1. Order short-circuit: when the customer has an order selected and asks
     about order/delivery/status/tracking, reply from the order itself.
  2. Keyword overlap: first predefined entry sharing more than
     ``threshold`` keywords with the question wins. No scoring across entries.

Pure functions only: no database, no logging side effects.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence


FALLBACK_REPLY = (
    "I'm sorry, I couldn't find a specific answer to your question. "
    "Would you like me to escalate this to our support team?"
)

DEFAULT_MIN_KEYWORD_MATCHES = 2

ORDER_TOKENS = ("order", "delivery", "status", "track")
STATUS_TOKENS = ("status", "where", "update")
DELIVERY_TOKENS = ("delivery", "when")
TRACKING_TOKENS = ("track", "tracking")


class PredefinedEntry(Protocol):
    question: str
    answer: str


@dataclass(frozen=True)
class OrderContext:
    order_number: str
    model: str
    status: str
    order_date: datetime
    expected_delivery: Optional[datetime] = None
    tracking_number: Optional[str] = None

    @classmethod
    def from_order(cls, order) -> "OrderContext":
        return cls(
            order_number=order.order_number,
            model=order.scooter_model,
            status=order.order_status,
            order_date=order.order_date,
            expected_delivery=order.expected_delivery,
            tracking_number=order.tracking_number,
        )


def format_date(value: datetime) -> str:
    return value.strftime("%B %d, %Y").replace(" 0", " ")


def _contains_any(text: str, tokens: Iterable[str]) -> bool:
    return any(t in text for t in tokens)


def is_order_question(question: str) -> bool:
    return _contains_any(question.lower(), ORDER_TOKENS)


def order_context_reply(question: str, order: OrderContext) -> str:
    """Build the order-specific reply. Sub-checks run status → delivery → tracking → summary."""
    q = question.lower()

    if _contains_any(q, STATUS_TOKENS):
        parts = [f"Your order {order.order_number} ({order.model}) is currently {order.status}."]
        if order.expected_delivery:
            parts.append(f"Expected delivery: {format_date(order.expected_delivery)}.")
        if order.tracking_number:
            parts.append(f"Tracking number: {order.tracking_number}.")
        return " ".join(parts)

    if _contains_any(q, DELIVERY_TOKENS):
        if order.expected_delivery:
            return (
                f"Your {order.model} (order {order.order_number}) is expected to be delivered "
                f"on {format_date(order.expected_delivery)}."
            )
        return (
            f"Your order {order.order_number} is currently {order.status}. "
            "We will update you with a delivery date as soon as it is scheduled."
        )

    if _contains_any(q, TRACKING_TOKENS):
        if order.tracking_number:
            return f"The tracking number for order {order.order_number} is {order.tracking_number}."
        return (
            f"A tracking number for order {order.order_number} will be available once it has been shipped."
        )

    return (
        f"Order {order.order_number}: {order.model}, status {order.status}, "
        f"ordered on {format_date(order.order_date)}."
    )


def count_keyword_matches(question: str, candidate_question: str, stop_words: Iterable[str] = ()) -> int:
    """Number of candidate keywords overlapping a question word (substring either way)."""
    ignored = {w.lower() for w in stop_words}
    keywords = [k for k in candidate_question.lower().split() if k not in ignored]
    question_words = [w for w in question.lower().split() if w not in ignored]

    return sum(
        1
        for keyword in keywords
        if any(keyword in word or word in keyword for word in question_words)
    )


def find_best_answer(
    question: str,
    candidates: Sequence[PredefinedEntry],
    order_context: Optional[OrderContext] = None,
    *,
    threshold: int = DEFAULT_MIN_KEYWORD_MATCHES,
    stop_words: Iterable[str] = (),
) -> Optional[str]:
    """Return the matched answer text, or None when the caller should use FALLBACK_REPLY."""
    if order_context is not None and is_order_question(question):
        return order_context_reply(question, order_context)

    stop_words = tuple(stop_words)
    for entry in candidates:
        if count_keyword_matches(question, entry.question, stop_words) > threshold:
            return entry.answer

    return None
