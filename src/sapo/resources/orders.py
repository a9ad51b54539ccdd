from collections.abc import Mapping
from typing import Any, Union

from .base import CrudResource


class Orders(CrudResource):
    path = "orders"
    singular = "order"

    def close(self, order_id: Union[int, str]):
        return self._client.post(self._member(order_id, "/close"), {}, key="order")

    def open(self, order_id: Union[int, str]):
        return self._client.post(self._member(order_id, "/open"), {}, key="order")

    def cancel(self, order_id: Union[int, str], data: Union[Mapping[str, Any], None] = None):
        """Cancel an order; data may carry reason, email, restock, amount."""
        return self._client.post(self._member(order_id, "/cancel"), dict(data or {}), key="order")
