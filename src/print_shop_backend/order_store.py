"""
Order persistence backed by ``orders.json``.

Orders are plain dictionaries: the store stamps ``orderId``, ``orderDate`` and
``status`` and passes every other client field through untouched.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .errors import NotFoundError
from .json_store import JsonListStore, Record
from .models import OrderStatus
from .utils import epoch_millis, generate_order_id, utc_timestamp

logger = logging.getLogger(__name__)


class OrderStore:
    """
    Append-only list of order records with a mutable ``status`` field.

    Args:
        path: Location of the JSON array file
        clock: Millisecond clock used for order ids (injectable for tests)
        rng: Random source for the order id tiebreak (injectable for tests)
    """

    def __init__(
        self,
        path: Path,
        clock: Callable[[], int] = epoch_millis,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._store = JsonListStore(path, label="orders")
        self._clock = clock
        self._rng = rng or random.Random()

    @property
    def path(self) -> Path:
        return self._store.path

    def list_orders(self) -> List[Record]:
        return self._store.read_all()

    def create_order(self, payload: Dict[str, Any]) -> Record:
        """
        Stamp and append a new order.

        Client-supplied values for the stamped keys are overwritten.
        Duplicate ids are not checked for; see ``generate_order_id``.
        """
        order = {
            **payload,
            "orderId": generate_order_id(self._clock, self._rng),
            "orderDate": utc_timestamp(),
            "status": OrderStatus.PENDING.value,
        }

        def _append(records: List[Record]) -> Record:
            records.append(order)
            return order

        created = self._store.mutate(_append)
        logger.info(f"Order {created['orderId']} created")
        return created

    def get_order(self, order_id: str) -> Record:
        for order in self._store.read_all():
            if order.get("orderId") == order_id:
                return order
        raise NotFoundError("Order not found")

    def update_status(self, order_id: str, status: str) -> Record:
        records = self._store.read_all()
        for order in records:
            if order.get("orderId") == order_id:
                order["status"] = status
                self._store.write_all(records)
                logger.info(f"Order {order_id} moved to status {status!r}")
                return order
        raise NotFoundError("Order not found")

    def delete_all(self) -> None:
        self._store.clear()
        logger.info("All orders deleted")
