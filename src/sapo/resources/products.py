from collections.abc import Mapping
from typing import Any, Union

from .base import CrudResource, Params


class Products(CrudResource):
    path = "products"
    singular = "product"

    # ---- variants ----
    def list_variants(self, product_id: Union[int, str], params: Params = None):
        return self._client.get(self._member(product_id, "/variants"), params, key="variants")

    def get_variant(self, variant_id: Union[int, str]):
        return self._client.get(f"/admin/variants/{variant_id}.json", key="variant")

    def create_variant(self, product_id: Union[int, str], data: Mapping[str, Any]):
        return self._client.post(
            self._member(product_id, "/variants"), {"variant": dict(data)}, key="variant"
        )

    def update_variant(self, variant_id: Union[int, str], data: Mapping[str, Any]):
        return self._client.put(
            f"/admin/variants/{variant_id}.json",
            {"variant": {"id": variant_id, **data}},
            key="variant",
        )

    def delete_variant(self, product_id: Union[int, str], variant_id: Union[int, str]):
        return self._client.delete(self._member(product_id, f"/variants/{variant_id}"))

    # ---- images ----
    def list_images(self, product_id: Union[int, str], params: Params = None):
        return self._client.get(self._member(product_id, "/images"), params, key="images")

    def create_image(self, product_id: Union[int, str], data: Mapping[str, Any]):
        return self._client.post(
            self._member(product_id, "/images"), {"image": dict(data)}, key="image"
        )

    def delete_image(self, product_id: Union[int, str], image_id: Union[int, str]):
        return self._client.delete(self._member(product_id, f"/images/{image_id}"))
