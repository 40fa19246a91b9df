# Overview: Atomic order-number allocation (MT-YYYYMMDD-NNNN).

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import OrderSequence
from ..time_utils import utcnow
from .concurrency import run_with_retry


ORDER_SEQUENCE = "order"
ORDER_PREFIX = "MT"
# Counter starts at 1000, so the first order is NNNN=1001
FIRST_ORDER_NUMBER = 1001


class SequenceError(Exception):
    """Raised when sequence operations fail."""
    pass


def ensure_sequence(name: str = ORDER_SEQUENCE) -> OrderSequence:
    row = db.session.query(OrderSequence).filter_by(name=name).first()
    if row is None:
        row = OrderSequence(name=name, next_number=FIRST_ORDER_NUMBER)
        db.session.add(row)
        db.session.commit()
    return row


def next_sequence_value(name: str = ORDER_SEQUENCE) -> int:
    """
    Atomically allocate the next value of a named counter.

    The increment is a single UPDATE; the first caller creates the row and a
    losing insert race falls back to the UPDATE. Must run before the caller
    adds other pending rows, since the insert race rolls back the session.
    """
    if not name:
        raise SequenceError("sequence name is required")

    stmt = (
        update(OrderSequence)
        .where(OrderSequence.name == name)
        .values(next_number=OrderSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    def _current() -> int:
        db.session.flush()
        current = db.session.query(OrderSequence.next_number).filter_by(name=name).scalar()
        return current - 1

    result = db.session.execute(stmt)
    if result.rowcount:
        return _current()

    seq = OrderSequence(name=name, next_number=FIRST_ORDER_NUMBER + 1)
    db.session.add(seq)
    try:
        db.session.flush()
        return FIRST_ORDER_NUMBER
    except IntegrityError:
        db.session.rollback()
        result = db.session.execute(stmt)
        if not result.rowcount:
            raise
        return _current()


def format_order_number(sequence: int, when: datetime | None = None, pad: int = 4) -> str:
    when = when or utcnow()
    return f"{ORDER_PREFIX}-{when:%Y%m%d}-{sequence:0{pad}d}"


def next_order_number(when: datetime | None = None) -> str:
    return run_with_retry(lambda: format_order_number(next_sequence_value(ORDER_SEQUENCE), when))
