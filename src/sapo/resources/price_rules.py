from typing import Union

from .base import CrudResource, Params


class PriceRules(CrudResource):
    path = "price_rules"
    singular = "price_rule"

    def list_discount_codes(self, price_rule_id: Union[int, str], params: Params = None):
        return self._client.get(
            self._member(price_rule_id, "/discount_codes"), params, key="discount_codes"
        )

    def create_discount_code(self, price_rule_id: Union[int, str], code: str):
        return self._client.post(
            self._member(price_rule_id, "/discount_codes"),
            {"discount_code": {"code": code}},
            key="discount_code",
        )

    def delete_discount_code(
        self, price_rule_id: Union[int, str], discount_code_id: Union[int, str]
    ):
        return self._client.delete(
            self._member(price_rule_id, f"/discount_codes/{discount_code_id}")
        )

    def lookup_discount_code(self, code: str):
        return self._client.get(
            "/admin/discount_codes/lookup.json", {"code": code}, key="discount_code"
        )
