"""
Canal de transacciones contra la base destino (Spanner, interfaz PostgreSQL).

Cada llamada a execute() abre su propia sesión, ejecuta UNA sentencia,
hace commit y cierra. No se mantiene una transacción abierta entre llamadas,
por lo que dos execute() del mismo usuario NO son atómicos entre sí.
execute_in_transaction() agrupa varias sentencias en una sola sesión cuando
se necesita atomicidad por usuario (ATOMIC_USERS).

METADATA POR LLAMADA:
    google-cloud-resource-prefix → nombre lógico de la base (projects/.../databases/...)
    x-goog-api-client            → identificador del cliente

Sobre PGAdapter ambos viajan en los parámetros de arranque de cada sesión
(dbname y application_name), que se envían en cada open_session().

Uso:
    channel = DestinationChannel(config.SPANNER_DSN)
    result = channel.execute("SELECT 1", intent="ping")
    print(result.rows)   # [(1,)]
"""

import logging
from collections import namedtuple

import psycopg2

import config
from errors import ExecutionError, StoreConnectionError

logger = logging.getLogger(__name__)

RESOURCE_PREFIX_HEADER = "google-cloud-resource-prefix"
CLIENT_HEADER = "x-goog-api-client"

ResultSet = namedtuple("ResultSet", ["rows", "rowcount"])


class DestinationChannel:
    """
    Cliente compartido hacia la base destino.

    Lo crea el orquestador y se pasa por referencia a cada componente que
    necesita ejecutar SQL (registry, migradores); no hay instancia global.

    Attributes:
        database_name (str): Nombre lógico de la base destino
        metadata (dict): Headers que acompañan cada sesión
    """

    def __init__(
        self,
        dsn,
        host=None,
        port=None,
        client_id=None,
        user=None,
        password=None,
        connect=psycopg2.connect,
        verify=True,
    ):
        """
        Args:
            dsn: DSN spanner://projects/<p>/instances/<i>/databases/<d>
            host, port: Dirección de PGAdapter (default: config)
            client_id: Valor del header de cliente (default: config.CLIENT_ID)
            connect: Fábrica de conexiones (psycopg2.connect; reemplazable en tests)
            verify: Abrir y cerrar una sesión de prueba para fallar temprano

        Raises:
            ConfigurationError: DSN inválido
            StoreConnectionError: No se pudo abrir la sesión de prueba
        """
        self.database_name = config.parse_spanner_dsn(dsn)
        self.host = host or config.PGADAPTER_HOST
        self.port = port or config.PGADAPTER_PORT
        self.user = config.SPANNER_USER if user is None else user
        self.password = config.SPANNER_PASSWORD if password is None else password
        self.metadata = {
            RESOURCE_PREFIX_HEADER: self.database_name,
            CLIENT_HEADER: client_id or config.CLIENT_ID,
        }
        self._connect = connect

        if verify:
            self.open_session().close()
            logger.info(f"✅ Conexión a Spanner exitosa ({self.database_name})")

    def open_session(self):
        """
        Abre una sesión nueva contra la base destino.

        Returns:
            Conexión DB-API (psycopg2)

        Raises:
            StoreConnectionError: Falla de canal o credenciales
        """
        try:
            return self._connect(
                host=self.host,
                port=self.port,
                dbname=self.metadata[RESOURCE_PREFIX_HEADER],
                application_name=self.metadata[CLIENT_HEADER],
                user=self.user,
                password=self.password,
            )
        except psycopg2.Error as e:
            raise StoreConnectionError(
                f"Could not open session on {self.database_name} "
                f"via {self.host}:{self.port}: {e}"
            ) from e

    def execute(self, sql, params=None, intent=None):
        """
        Ejecuta una sentencia en su propia sesión.

        Args:
            sql: Sentencia con placeholders %s
            params: Valores enlazados (lista/tupla) o None
            intent: Descripción para el mensaje de error (ej: 'insert bso')

        Returns:
            ResultSet: rows (lista de tuplas, vacía para DML) y rowcount

        Raises:
            StoreConnectionError: No se pudo abrir la sesión
            ExecutionError: Falló la ejecución
        """
        return self.execute_in_transaction([(sql, params)], intent=intent)[0]

    def execute_in_transaction(self, statements, intent=None):
        """
        Ejecuta varias sentencias en una sola sesión y transacción.

        Si cualquier sentencia falla se hace rollback de todas.

        Args:
            statements: Lista de (sql, params)

        Returns:
            list[ResultSet]: Un resultado por sentencia, en orden
        """
        intent = intent or "execute sql"
        conn = self.open_session()
        results = []
        try:
            with conn.cursor() as cursor:
                for sql, params in statements:
                    logger.debug("sql: %s", sql, extra={"intent": intent})
                    cursor.execute(sql, params)
                    rows = cursor.fetchall() if cursor.description else []
                    results.append(ResultSet(rows=rows, rowcount=cursor.rowcount))
            conn.commit()
            return results
        except psycopg2.Error as e:
            try:
                conn.rollback()
            except psycopg2.Error:
                logger.warning("⚠️  Rollback failed after error in '%s'", intent)
            raise ExecutionError(intent, e) from e
        finally:
            conn.close()
