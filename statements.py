"""
Construcción de sentencias INSERT multi-fila parametrizadas.

Los valores nunca se concatenan en el SQL: cada fila se renderiza como una
tupla de placeholders '%s' y los valores viajan como parámetros enlazados
(psycopg2 los escapa al ejecutar). Así un payload con comillas o un nombre de
colección arbitrario no puede romper la sentencia.

Los identificadores (tabla, columnas) sí se interpolan, por eso se validan
contra un patrón estricto.

No se usa psycopg2.extras.execute_values: arma y pagina el SQL sobre un
cursor abierto, y acá las sentencias se construyen antes de tener sesión
(modo atómico las junta en una sola transacción, los tests las inspeccionan
sin conexión). chunked() cumple el rol de su page_size.

Ejemplo:
    >>> build_insert("user_collections", ["collection_id", "fxa_uid"], [(7, "abc")])
    ('INSERT INTO user_collections (collection_id, fxa_uid) VALUES (%s, %s)', [7, 'abc'])
"""

import re

IDENTIFIER_RE = re.compile(r"^[a-z_][a-z0-9_]*$")


def _check_identifier(name):
    if not isinstance(name, str) or not IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def build_insert(table_name, column_list, rows, conflict_target=None):
    """
    Arma un único INSERT para todas las filas.

    Args:
        table_name: Tabla destino (ej: 'bso')
        column_list: Columnas en el orden de los valores de cada fila
        rows: Secuencia de tuplas, una por fila
        conflict_target: Columnas de la clave; si se indica se agrega
                         ON CONFLICT (...) DO NOTHING para que re-ejecutar
                         un usuario parcialmente migrado sea seguro

    Returns:
        tuple|None: (sql, params) o None si rows está vacío (no hay nada que ejecutar)

    Raises:
        ValueError: Identificador inválido o fila con cantidad de valores distinta
                    a la cantidad de columnas
    """
    rows = list(rows)
    if not rows:
        return None

    table = _check_identifier(table_name)
    columns = [_check_identifier(c) for c in column_list]
    if not columns:
        raise ValueError("column_list must not be empty")

    placeholder = "(" + ", ".join(["%s"] * len(columns)) + ")"
    params = []
    for i, row in enumerate(rows):
        if len(row) != len(columns):
            raise ValueError(
                f"Row {i} has {len(row)} values, expected {len(columns)} for {table}"
            )
        params.extend(row)

    sql = (
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES "
        + ", ".join([placeholder] * len(rows))
    )
    if conflict_target:
        keys = ", ".join(_check_identifier(c) for c in conflict_target)
        sql += f" ON CONFLICT ({keys}) DO NOTHING"
    return sql, params


def chunked(rows, size):
    """Parte rows en listas de a lo sumo size elementos."""
    rows = list(rows)
    if size <= 0:
        yield rows
        return
    for start in range(0, len(rows), size):
        yield rows[start:start + size]
