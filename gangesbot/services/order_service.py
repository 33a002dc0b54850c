import datetime as dt
import logging
import random
import string
import time
from typing import List, Optional

from sqlalchemy.orm import Session

from gangesbot.models.order import ScooterOrder

logger = logging.getLogger(__name__)

GANGES_MODELS = ("Ganges-X", "Ganges-2X", "Ganges-4X")
DEMO_ORDER_STATUSES = ("processing", "shipped", "delivered", "confirmed")

_TRACKING_CHARS = string.ascii_uppercase + string.digits


def add_months(value: dt.datetime, months: int) -> dt.datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    # Clamp to the last day of the target month (Jan 31 + 1 month -> Feb 28/29).
    for day in (value.day, 30, 29, 28):
        try:
            return value.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    raise ValueError(f"Cannot add {months} months to {value!r}")


def expected_delivery_for(model: str, order_date: dt.datetime) -> dt.datetime:
    """Ganges-X ships in a week, Ganges-2X in a month, Ganges-4X in two months."""
    if model == "Ganges-2X":
        return add_months(order_date, 1)
    if model == "Ganges-4X":
        return add_months(order_date, 2)
    return order_date + dt.timedelta(days=7)


def generate_order_number(rng: random.Random) -> str:
    timestamp = str(int(time.time() * 1000))[-6:]
    return f"GNG{timestamp}{rng.randrange(1000):03d}"


def generate_tracking_number(rng: random.Random) -> str:
    return "TRK" + "".join(rng.choice(_TRACKING_CHARS) for _ in range(8))


def _order_number_taken(db: Session, order_number: str) -> bool:
    return db.query(ScooterOrder.id).filter(ScooterOrder.order_number == order_number).first() is not None


def has_orders(db: Session, user_id: int) -> bool:
    return db.query(ScooterOrder.id).filter(ScooterOrder.user_id == user_id).first() is not None


def generate_demo_orders(db: Session, user_id: int, rng: Optional[random.Random] = None) -> List[ScooterOrder]:
    """Seed 3-5 demo orders for a first-time user; every model appears at least once."""
    rng = rng or random.Random()
    order_count = rng.randint(3, 5)

    models = list(GANGES_MODELS)
    models.extend(rng.choice(GANGES_MODELS) for _ in range(order_count - len(GANGES_MODELS)))
    rng.shuffle(models)

    now = dt.datetime.now(dt.timezone.utc)
    used_numbers = set()
    orders: List[ScooterOrder] = []
    for model in models:
        order_date = now - dt.timedelta(days=rng.randrange(90))

        order_number = generate_order_number(rng)
        while order_number in used_numbers or _order_number_taken(db, order_number):
            order_number = generate_order_number(rng)
        used_numbers.add(order_number)

        orders.append(
            ScooterOrder(
                user_id=user_id,
                order_number=order_number,
                scooter_model=model,
                order_status=rng.choice(DEMO_ORDER_STATUSES),
                order_date=order_date,
                expected_delivery=expected_delivery_for(model, order_date),
                tracking_number=generate_tracking_number(rng),
            )
        )

    db.add_all(orders)
    db.commit()
    logger.info("Created %s demo orders for user %s", len(orders), user_id)
    return orders


def list_orders(db: Session, user_id: int) -> List[ScooterOrder]:
    return (
        db.query(ScooterOrder)
        .filter(ScooterOrder.user_id == user_id)
        .order_by(ScooterOrder.order_date.desc(), ScooterOrder.id.desc())
        .all()
    )
