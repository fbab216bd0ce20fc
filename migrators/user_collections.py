"""
Migrador para la tabla user_collections del destino.

Asocia cada colección del usuario con su identidad FxA y la fecha de última
modificación. El id se resuelve por nombre en el registry reconciliado; si el
nombre no está se usa el id de origen.
"""

from .base import BaseMigrator


class UserCollectionsMigrator(BaseMigrator):
    table = "user_collections"
    columns = ("collection_id", "fxa_kid", "fxa_uid", "modified")
    conflict_target = ("fxa_uid", "fxa_kid", "collection_id")

    def extract_data(self, user, items, collections):
        return [
            (
                collections.resolve(item.col_name, item.col_id),
                user.fxa_kid,
                user.fxa_uid,
                item.modified,
            )
            for item in items
        ]
