"""
Módulo base para migradores de tablas del destino Spanner.

Define la interfaz común (contrato) que implementa cada migrador de tabla.
syncmigra.py orquesta usuarios y shards sin conocer los detalles de cada tabla.

Patrón de diseño: Strategy Pattern
- syncmigra.py = Contexto (orquestador)
- BaseMigrator = Estrategia abstracta
- CatalogMigrator, UserCollectionsMigrator, BsoMigrator = Estrategias concretas

Flujo de uso:
1. syncmigra.py carga el migrador de la tabla (load_migrator_for_table)
2. Llama a extract_data() para convertir registros de origen en tuplas
3. Llama a insert_batches() que arma los INSERT (statements.build_insert)
   y los ejecuta por el canal

Ejemplo de implementación:
    class MiMigrador(BaseMigrator):
        table = "mi_tabla"
        columns = ("id", "name")
        conflict_target = ("id",)

        def extract_data(self, user, items, collections):
            return [(item.id, item.name) for item in items]
"""

from abc import ABC, abstractmethod

import config
from statements import build_insert, chunked


class BaseMigrator(ABC):
    """
    Clase abstracta para migradores de una tabla destino.

    Attributes:
        table (str): Tabla destino
        columns (tuple): Columnas en el orden de las tuplas de extract_data()
        conflict_target (tuple): Clave primaria; los INSERT ignoran filas ya
                                 existentes, así re-migrar un usuario es seguro
        batch_size (int): Máximo de filas por sentencia (0 = sin límite)
    """

    table = None
    columns = ()
    conflict_target = ()

    def __init__(self, batch_size=None):
        self.batch_size = config.BATCH_SIZE if batch_size is None else batch_size

    @abstractmethod
    def extract_data(self, user, items, collections) -> list:
        """
        Convierte registros del origen en tuplas para la tabla destino.

        Args:
            user: User dueño de los registros (None para tablas globales)
            items: Registros del origen (UserCollection, Bso, Collection...)
            collections: Registry reconciliado, para resolver ids por nombre

        Returns:
            list: Tuplas con los valores en el orden de self.columns
        """
        pass

    def build_statements(self, rows) -> list:
        """
        Arma los INSERT para las filas, partidos en lotes de batch_size.

        Returns:
            list: [(sql, params), ...]; vacía si no hay filas
        """
        statements = []
        for batch in chunked(rows, self.batch_size):
            statement = build_insert(
                self.table, self.columns, batch, conflict_target=self.conflict_target
            )
            if statement is not None:
                statements.append(statement)
        return statements

    def insert_batches(self, rows, channel) -> int:
        """
        Ejecuta los INSERT de las filas, una sesión por sentencia.

        Args:
            rows: Tuplas devueltas por extract_data()
            channel: DestinationChannel

        Returns:
            int: Cantidad de filas enviadas

        Raises:
            ExecutionError: Falló alguna sentencia
        """
        for sql, params in self.build_statements(rows):
            channel.execute(sql, params, intent=f"insert {self.table}")
        return len(rows)
