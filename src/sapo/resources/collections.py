from typing import Union

from .base import CrudResource, Params, Resource


class CustomCollections(CrudResource):
    path = "custom_collections"
    singular = "custom_collection"


class SmartCollections(CrudResource):
    path = "smart_collections"
    singular = "smart_collection"


class Collections(Resource):
    """Custom and smart collections plus the collects linking products to them.

    client.collections.custom.list(), client.collections.smart.get(id), ...
    """

    def __init__(self, client):
        super().__init__(client)
        self.custom = CustomCollections(client)
        self.smart = SmartCollections(client)

    def products(self, collection_id: Union[int, str], params: Params = None):
        return self._client.get(
            f"/admin/collections/{collection_id}/products.json", params, key="products"
        )

    def list_collects(self, params: Params = None):
        return self._client.get("/admin/collects.json", params, key="collects")

    def create_collect(self, product_id: Union[int, str], collection_id: Union[int, str]):
        body = {"collect": {"product_id": product_id, "collection_id": collection_id}}
        return self._client.post("/admin/collects.json", body, key="collect")

    def delete_collect(self, collect_id: Union[int, str]):
        return self._client.delete(f"/admin/collects/{collect_id}.json")
