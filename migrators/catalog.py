"""
Migrador para la tabla collections del destino (catálogo nombre ↔ id).

Solo inserta las colecciones del registry que el destino todavía no define
(ver registry.align_with_catalog). Corre una vez, antes de cualquier
usuario, para que los ids resueltos por nombre existan en el destino.
"""

from .base import BaseMigrator


class CatalogMigrator(BaseMigrator):
    table = "collections"
    columns = ("collection_id", "name")
    conflict_target = ("collection_id",)

    def extract_data(self, user, items, collections):
        return [(c.collection_id, c.name) for c in items]
