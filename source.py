"""
Lectura del store de origen (MySQL, schema sync 1.5).

TABLAS DE ORIGEN:
- bso0..bsoN: Registros BSO repartidos por shard (userid, collection, id,
  sortindex, modified [ms], payload, ttl [s epoch])
- user_collections: Última modificación por (userid, collection) [ms]
- collections: Catálogo legacy (collectionid, name). Los ids de colecciones
  custom NO coinciden con los del destino; por eso se viaja con el nombre.

Este módulo es de solo lectura: nunca modifica el origen.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import pymysql

import config
from errors import DataError, ExecutionError, StoreConnectionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class User:
    uid: int
    fxa_uid: str
    fxa_kid: str
    bso: int


@dataclass(frozen=True)
class UserCollection:
    col_name: str
    col_id: int
    modified: datetime


@dataclass(frozen=True)
class Bso:
    col_name: str
    col_id: int
    bso_id: str
    expiry: datetime
    modify: datetime
    payload: str
    sort_index: Optional[int] = None


def from_millis(value):
    """Timestamp MySQL en milisegundos → datetime UTC."""
    return datetime.fromtimestamp(int(value) / 1000, timezone.utc)


def from_seconds(value):
    """TTL MySQL en segundos epoch → datetime UTC."""
    return datetime.fromtimestamp(int(value), timezone.utc)


def bso_table(bso_num):
    return f"bso{int(bso_num)}"


class SourceStore:
    """
    Cliente de lectura del MySQL legacy.

    Mantiene una conexión abierta durante toda la corrida; cerrar con close().
    """

    def __init__(self, dsn, connect=pymysql.connect):
        """
        Raises:
            ConfigurationError: DSN faltante o inválido
            StoreConnectionError: No se pudo conectar
        """
        params = config.parse_mysql_dsn(dsn)
        try:
            self.conn = connect(charset="utf8mb4", **params)
        except pymysql.Error as e:
            raise StoreConnectionError(
                f"Could not connect to MySQL {params['host']}:{params['port']}: {e}"
            ) from e
        logger.info(f"✅ Conexión a MySQL exitosa ({params['database']})")

    def _fetch(self, sql, params, intent):
        try:
            # Reabre la conexión si el servidor la cerró (wait_timeout, "gone away")
            self.conn.ping(reconnect=True)
            with self.conn.cursor() as cursor:
                cursor.execute(sql, params)
                return cursor.fetchall()
        except pymysql.Error as e:
            raise ExecutionError(intent, e) from e

    def get_users(self, bso_num, fxa):
        """
        Usuarios del shard bso_num con identidad FxA conocida.

        Args:
            bso_num: Índice de shard
            fxa: FxaInfo

        Returns:
            tuple: (users: list[User], skipped: list[int]) — skipped son los uid
                   sin entrada en el export FxA

        Raises:
            ExecutionError: Falló la consulta
        """
        rows = self._fetch(
            f"SELECT DISTINCT userid FROM {bso_table(bso_num)} ORDER BY userid",
            None,
            f"fetch users of bso{bso_num}",
        )
        users, skipped = [], []
        for (uid,) in rows:
            data = fxa.get(int(uid))
            if data is None:
                skipped.append(int(uid))
                continue
            users.append(User(uid=int(uid), fxa_uid=data.fxa_uid, fxa_kid=data.fxa_kid, bso=bso_num))
        if skipped:
            logger.warning(f"⚠️  bso{bso_num}: {len(skipped)} usuarios sin identidad FxA")
        return users, skipped

    def get_user_collections(self, user):
        """Colecciones del usuario con su última modificación."""
        rows = self._fetch(
            """
            SELECT cc.name, uc.collection, uc.last_modified
            FROM user_collections AS uc, collections AS cc
            WHERE uc.userid = %s AND uc.collection = cc.collectionid
            ORDER BY uc.collection
            """,
            (user.uid,),
            f"fetch collections of user {user.uid}",
        )
        try:
            return [
                UserCollection(col_name=name, col_id=int(col_id), modified=from_millis(modified))
                for name, col_id, modified in rows
            ]
        except (TypeError, ValueError) as e:
            raise DataError(f"Invalid user_collections row for user {user.uid}: {e}") from e

    def get_user_bsos(self, user):
        """Registros BSO del usuario en su shard."""
        rows = self._fetch(
            f"""
            SELECT cc.name, bso.collection, bso.id, bso.ttl, bso.modified,
                   bso.payload, bso.sortindex
            FROM {bso_table(user.bso)} AS bso, collections AS cc
            WHERE bso.userid = %s AND bso.collection = cc.collectionid
            ORDER BY bso.collection, bso.id
            """,
            (user.uid,),
            f"fetch bsos of user {user.uid}",
        )
        try:
            return [
                Bso(
                    col_name=name,
                    col_id=int(col_id),
                    bso_id=str(bso_id),
                    expiry=from_seconds(ttl),
                    modify=from_millis(modified),
                    payload=payload,
                    sort_index=sortindex,
                )
                for name, col_id, bso_id, ttl, modified, payload, sortindex in rows
            ]
        except (TypeError, ValueError, OverflowError) as e:
            raise DataError(f"Invalid bso row for user {user.uid}: {e}") from e

    def close(self):
        self.conn.close()
