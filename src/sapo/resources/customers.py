from typing import Union

from .base import CrudResource, Params


class Customers(CrudResource):
    path = "customers"
    singular = "customer"

    def search(self, query: str, params: Params = None):
        return self._client.get(
            self._collection("/search"), {**(params or {}), "query": query}, key="customers"
        )

    def orders(self, customer_id: Union[int, str], params: Params = None):
        return self._client.get(self._member(customer_id, "/orders"), params, key="orders")
