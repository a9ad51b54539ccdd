from collections.abc import Mapping
from typing import Any, Union

Params = Union[Mapping[str, Any], None]


class Resource:
    """Path templates for one API entity over the owning client's verbs.

    Methods return whatever the client verb returns, so with AsyncSapoClient every
    call is awaitable.
    """

    def __init__(self, client):
        self._client = client


class CrudResource(Resource):
    """list/count/get/create/update/delete under /admin/{path}.json.

    Subclasses set `path` (collection segment and root key of list responses) and
    `singular` (root key of single-object requests and responses).
    """

    path: str = ""
    singular: str = ""

    def _collection(self, suffix: str = "") -> str:
        return f"/admin/{self.path}{suffix}.json"

    def _member(self, resource_id: Union[int, str], suffix: str = "") -> str:
        return f"/admin/{self.path}/{resource_id}{suffix}.json"

    def list(self, params: Params = None):
        return self._client.get(self._collection(), params, key=self.path)

    def count(self, params: Params = None):
        return self._client.get(self._collection("/count"), params, key="count")

    def get(self, resource_id: Union[int, str], params: Params = None):
        return self._client.get(self._member(resource_id), params, key=self.singular)

    def create(self, data: Mapping[str, Any]):
        return self._client.post(self._collection(), {self.singular: dict(data)}, key=self.singular)

    def update(self, resource_id: Union[int, str], data: Mapping[str, Any]):
        body = {self.singular: {"id": resource_id, **data}}
        return self._client.put(self._member(resource_id), body, key=self.singular)

    def delete(self, resource_id: Union[int, str]):
        return self._client.delete(self._member(resource_id))
