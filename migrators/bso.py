"""
Migrador para la tabla bso del destino.

DECISIONES DE DISEÑO:
- collection_id por nombre en el registry, con fallback al id del registro
  de origen: una colección desconocida nunca bloquea la migración
- payload y bso_id viajan como parámetros enlazados (pueden traer comillas)
- sortindex ausente se guarda como NULL, no como 0
- Usuarios con muchos BSO se parten en varias sentencias de BATCH_SIZE filas
"""

from .base import BaseMigrator


class BsoMigrator(BaseMigrator):
    table = "bso"
    columns = (
        "collection_id",
        "fxa_kid",
        "fxa_uid",
        "bso_id",
        "expiry",
        "modified",
        "payload",
        "sortindex",
    )
    conflict_target = ("fxa_uid", "fxa_kid", "collection_id", "bso_id")

    def extract_data(self, user, items, collections):
        return [self._extract_row(user, bso, collections) for bso in items]

    def _extract_row(self, user, bso, collections):
        return (
            collections.resolve(bso.col_name, bso.col_id),
            user.fxa_kid,
            user.fxa_uid,
            bso.bso_id,
            bso.expiry,
            bso.modify,
            bso.payload,
            bso.sort_index,
        )
