"""
Funciones helper y dobles de prueba compartidos para todos los tests.

Proporciona:
- Carga dinámica de migradores basándose en config.py
- FakeChannel: canal destino que registra sentencias sin red
- FakeSource: store de origen en memoria
- FakeConnection: conexión DB-API mínima (psycopg2 / pymysql)
"""

import sys
import os
import importlib
from datetime import datetime, timezone

# Agregar directorio raíz al path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from channel import ResultSet
from errors import ExecutionError
from source import Bso, User, UserCollection

TS = datetime(2020, 1, 1, tzinfo=timezone.utc)


def get_migrator_class_for_table(table_name):
    """
    Carga dinámicamente la clase migrador para una tabla destino.

    Sigue la convención de nombres:
    - user_collections → UserCollectionsMigrator (en migrators/user_collections.py)
    - collections → CatalogMigrator (en migrators/catalog.py)
    """
    module_name = config.get_table_config(table_name)["module"]
    class_name = "".join(word.capitalize() for word in module_name.split("_")) + "Migrator"
    module = importlib.import_module(f"migrators.{module_name}")
    return getattr(module, class_name)


def get_all_migrator_classes():
    """Lista de tuplas (nombre_clase, clase) en orden de config.MIGRATION_ORDER."""
    return [
        (get_migrator_class_for_table(t).__name__, get_migrator_class_for_table(t))
        for t in config.MIGRATION_ORDER
    ]


def make_user(uid=1, bso=0):
    return User(uid=uid, fxa_uid=f"fxa{uid}", fxa_kid=f"0000000000001-kid{uid}", bso=bso)


def make_bsos(count, col_name="bookmarks", col_id=7):
    return [
        Bso(
            col_name=col_name,
            col_id=col_id,
            bso_id=f"bso-{i}",
            expiry=TS,
            modify=TS,
            payload=f'{{"n": {i}}}',
            sort_index=i,
        )
        for i in range(count)
    ]


def make_user_collections(names):
    return [UserCollection(col_name=name, col_id=100 + i, modified=TS) for i, name in enumerate(names)]


class FakeChannel:
    """
    Canal destino en memoria.

    Attributes:
        executed: [(sql, params, intent)] en orden de ejecución
        transactions: [[(sql, params), ...]] por cada execute_in_transaction
        rows: {substring_sql: filas} para responder SELECTs
        fail_when: callable(sql, params, intent) → bool; si devuelve True se lanza ExecutionError
    """

    def __init__(self, rows=None, fail_when=None):
        self.executed = []
        self.transactions = []
        self.rows = rows or {}
        self.fail_when = fail_when

    def _run(self, sql, params, intent):
        if self.fail_when is not None and self.fail_when(sql, params, intent):
            raise ExecutionError(intent, "simulated failure")
        self.executed.append((sql, params, intent))
        for fragment, rows in self.rows.items():
            if fragment in sql:
                return ResultSet(rows=list(rows), rowcount=len(rows))
        # INSERT sin fragmento configurado: todas las tuplas se insertan
        return ResultSet(rows=[], rowcount=sql.count("(%s"))

    def execute(self, sql, params=None, intent=None):
        return self._run(sql, params, intent)

    def execute_in_transaction(self, statements, intent=None):
        self.transactions.append(list(statements))
        return [self._run(sql, params, intent) for sql, params in statements]

    def inserts_into(self, table):
        prefix = f"INSERT INTO {table} "
        return [(sql, params) for sql, params, _ in self.executed if sql.startswith(prefix)]


class FakeSource:
    """Store de origen en memoria; registra los shards consultados."""

    def __init__(self, users_by_shard=None, collections_by_uid=None, bsos_by_uid=None,
                 skipped_by_shard=None, fail_shards=()):
        self.users_by_shard = users_by_shard or {}
        self.collections_by_uid = collections_by_uid or {}
        self.bsos_by_uid = bsos_by_uid or {}
        self.skipped_by_shard = skipped_by_shard or {}
        self.fail_shards = set(fail_shards)
        self.shards_requested = []
        self.closed = False

    def get_users(self, bso_num, fxa):
        self.shards_requested.append(bso_num)
        if bso_num in self.fail_shards:
            raise ExecutionError(f"fetch users of bso{bso_num}", "simulated failure")
        return list(self.users_by_shard.get(bso_num, [])), list(self.skipped_by_shard.get(bso_num, []))

    def get_user_collections(self, user):
        return list(self.collections_by_uid.get(user.uid, []))

    def get_user_bsos(self, user):
        return list(self.bsos_by_uid.get(user.uid, []))

    def close(self):
        self.closed = True


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.description = None
        self.rowcount = -1
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.conn.statements.append((sql, params))
        if self.conn.error is not None:
            raise self.conn.error
        self._rows = list(self.conn.result_rows)
        self.description = [("col",)] if sql.lstrip().upper().startswith("SELECT") else None
        self.rowcount = len(self._rows)

    def fetchall(self):
        return self._rows


class FakeConnection:
    """Conexión DB-API: registra sentencias, commit, rollback y close."""

    def __init__(self, result_rows=(), error=None, ping_error=None):
        self.result_rows = result_rows
        self.error = error
        self.ping_error = ping_error
        self.statements = []
        self.pings = []
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def ping(self, reconnect=True):
        self.pings.append(reconnect)
        if self.ping_error is not None:
            raise self.ping_error

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class RecordingConnect:
    """Reemplazo de psycopg2.connect / pymysql.connect que guarda los kwargs."""

    def __init__(self, result_rows=(), error=None, connect_error=None, ping_error=None):
        self.result_rows = result_rows
        self.error = error
        self.connect_error = connect_error
        self.ping_error = ping_error
        self.calls = []
        self.connections = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        if self.connect_error is not None:
            raise self.connect_error
        conn = FakeConnection(self.result_rows, self.error, self.ping_error)
        self.connections.append(conn)
        return conn
