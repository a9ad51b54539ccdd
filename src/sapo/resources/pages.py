from .base import CrudResource


class Pages(CrudResource):
    path = "pages"
    singular = "page"
