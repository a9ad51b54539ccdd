from collections.abc import Mapping
from typing import Any, Union

from .base import Params, Resource

Id = Union[int, str]


class Fulfillments(Resource):
    """Fulfillments always live under an order."""

    def _path(self, order_id: Id, suffix: str = "") -> str:
        return f"/admin/orders/{order_id}/fulfillments{suffix}.json"

    def list(self, order_id: Id, params: Params = None):
        return self._client.get(self._path(order_id), params, key="fulfillments")

    def count(self, order_id: Id, params: Params = None):
        return self._client.get(self._path(order_id, "/count"), params, key="count")

    def get(self, order_id: Id, fulfillment_id: Id):
        return self._client.get(self._path(order_id, f"/{fulfillment_id}"), key="fulfillment")

    def create(self, order_id: Id, data: Mapping[str, Any]):
        return self._client.post(
            self._path(order_id), {"fulfillment": dict(data)}, key="fulfillment"
        )

    def update(self, order_id: Id, fulfillment_id: Id, data: Mapping[str, Any]):
        return self._client.put(
            self._path(order_id, f"/{fulfillment_id}"),
            {"fulfillment": {"id": fulfillment_id, **data}},
            key="fulfillment",
        )

    def complete(self, order_id: Id, fulfillment_id: Id):
        return self._client.post(
            self._path(order_id, f"/{fulfillment_id}/complete"), {}, key="fulfillment"
        )

    def cancel(self, order_id: Id, fulfillment_id: Id):
        return self._client.post(
            self._path(order_id, f"/{fulfillment_id}/cancel"), {}, key="fulfillment"
        )
