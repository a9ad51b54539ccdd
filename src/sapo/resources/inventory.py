from collections.abc import Mapping
from typing import Any, Union

from .base import Params, Resource

Id = Union[int, str]


class Inventory(Resource):
    def list_levels(self, params: Params = None):
        """params must name inventory_item_ids and/or location_ids."""
        return self._client.get("/admin/inventory_levels.json", params, key="inventory_levels")

    def adjust(self, location_id: Id, inventory_item_id: Id, available_adjustment: int):
        body = {
            "location_id": location_id,
            "inventory_item_id": inventory_item_id,
            "available_adjustment": available_adjustment,
        }
        return self._client.post("/admin/inventory_levels/adjust.json", body, key="inventory_level")

    def set(self, location_id: Id, inventory_item_id: Id, available: int):
        body = {
            "location_id": location_id,
            "inventory_item_id": inventory_item_id,
            "available": available,
        }
        return self._client.post("/admin/inventory_levels/set.json", body, key="inventory_level")

    def connect(self, location_id: Id, inventory_item_id: Id):
        body = {"location_id": location_id, "inventory_item_id": inventory_item_id}
        return self._client.post(
            "/admin/inventory_levels/connect.json", body, key="inventory_level"
        )

    def delete_level(self, location_id: Id, inventory_item_id: Id):
        params = {"location_id": location_id, "inventory_item_id": inventory_item_id}
        return self._client.delete("/admin/inventory_levels.json", params)

    def get_item(self, inventory_item_id: Id):
        return self._client.get(
            f"/admin/inventory_items/{inventory_item_id}.json", key="inventory_item"
        )

    def update_item(self, inventory_item_id: Id, data: Mapping[str, Any]):
        return self._client.put(
            f"/admin/inventory_items/{inventory_item_id}.json",
            {"inventory_item": {"id": inventory_item_id, **data}},
            key="inventory_item",
        )

    def list_locations(self, params: Params = None):
        return self._client.get("/admin/locations.json", params, key="locations")
