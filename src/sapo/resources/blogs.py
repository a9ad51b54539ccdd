from collections.abc import Mapping
from typing import Any, Union

from .base import CrudResource, Params

Id = Union[int, str]


class Blogs(CrudResource):
    path = "blogs"
    singular = "blog"

    # ---- articles ----
    def list_articles(self, blog_id: Id, params: Params = None):
        return self._client.get(self._member(blog_id, "/articles"), params, key="articles")

    def count_articles(self, blog_id: Id, params: Params = None):
        return self._client.get(self._member(blog_id, "/articles/count"), params, key="count")

    def get_article(self, blog_id: Id, article_id: Id):
        return self._client.get(self._member(blog_id, f"/articles/{article_id}"), key="article")

    def create_article(self, blog_id: Id, data: Mapping[str, Any]):
        return self._client.post(
            self._member(blog_id, "/articles"), {"article": dict(data)}, key="article"
        )

    def update_article(self, blog_id: Id, article_id: Id, data: Mapping[str, Any]):
        return self._client.put(
            self._member(blog_id, f"/articles/{article_id}"),
            {"article": {"id": article_id, **data}},
            key="article",
        )

    def delete_article(self, blog_id: Id, article_id: Id):
        return self._client.delete(self._member(blog_id, f"/articles/{article_id}"))
