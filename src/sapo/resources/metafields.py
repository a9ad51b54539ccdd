from collections.abc import Mapping
from typing import Any, Union

from .base import Params, Resource

Id = Union[int, str]


class Metafields(Resource):
    """Shop-level metafields, or ones owned by a resource (owner_resource="products", ...)."""

    def _collection(self, owner_resource: Union[str, None], owner_id: Union[Id, None]) -> str:
        if (owner_resource is None) != (owner_id is None):
            raise ValueError("owner_resource and owner_id must be given together")
        if owner_resource is None:
            return "/admin/metafields.json"
        return f"/admin/{owner_resource}/{owner_id}/metafields.json"

    def list(
        self,
        owner_resource: Union[str, None] = None,
        owner_id: Union[Id, None] = None,
        params: Params = None,
    ):
        return self._client.get(
            self._collection(owner_resource, owner_id), params, key="metafields"
        )

    def get(self, metafield_id: Id):
        return self._client.get(f"/admin/metafields/{metafield_id}.json", key="metafield")

    def create(
        self,
        data: Mapping[str, Any],
        owner_resource: Union[str, None] = None,
        owner_id: Union[Id, None] = None,
    ):
        return self._client.post(
            self._collection(owner_resource, owner_id), {"metafield": dict(data)}, key="metafield"
        )

    def update(self, metafield_id: Id, data: Mapping[str, Any]):
        return self._client.put(
            f"/admin/metafields/{metafield_id}.json",
            {"metafield": {"id": metafield_id, **data}},
            key="metafield",
        )

    def delete(self, metafield_id: Id):
        return self._client.delete(f"/admin/metafields/{metafield_id}.json")
