"""
Registry de colecciones: mapeo nombre → id estable en la base destino.

RECONCILIACIÓN:
1. Se parte de DEFAULT_COLLECTIONS (ids históricos de sync 1.5), que solo
   garantizan una base para la primera ejecución.
2. Se leen los pares (collection_id, name) que el destino ya usa.
3. La verdad del destino reemplaza al default del mismo nombre.
4. Un default cuyo id ya lo usa el destino con OTRO nombre se descarta
   (los ids son únicos).

reconcile() es de solo lectura. Después, align_with_catalog() compara el
registry con la tabla collections completa del destino (no solo con las
colecciones en uso): corrige ids por nombre, reasigna ids ocupados por otra
colección y devuelve las faltantes, que el orquestador inserta antes de
migrar usuarios.

Un id no numérico hace fallar toda la reconciliación con DataError: con un
registry corrupto ninguna resolución de ids posterior es confiable.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass

from errors import DataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collection:
    name: str
    collection_id: int
    last_modified: int = 0


class Collections:
    """Mapeo ordenado nombre → Collection."""

    def __init__(self, items=None):
        self._items = OrderedDict()
        for collection in items or []:
            self.set(collection.name, collection)

    @classmethod
    def from_ids(cls, ids):
        """Collections({'bookmarks': 7, ...}) con last_modified=0."""
        return cls(Collection(name, int(cid)) for name, cid in ids.items())

    def get(self, name):
        return self._items.get(name)

    def set(self, name, collection):
        self._items[name] = collection

    def remove(self, name):
        self._items.pop(name, None)

    def by_id(self, collection_id):
        for collection in self._items.values():
            if collection.collection_id == collection_id:
                return collection
        return None

    def items(self):
        return list(self._items.values())

    def names(self):
        return list(self._items.keys())

    def copy(self):
        return Collections(self.items())

    def resolve(self, name, fallback_id):
        """
        Id destino de una colección por nombre.

        Si el nombre no está en el registry se usa el id que trae el propio
        registro de origen, para que una colección desconocida nunca bloquee
        la migración.
        """
        collection = self.get(name)
        if collection is None:
            return fallback_id
        return collection.collection_id

    def __contains__(self, name):
        return name in self._items

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items.values())

    def __eq__(self, other):
        if not isinstance(other, Collections):
            return NotImplemented
        return list(self._items.items()) == list(other._items.items())

    def __repr__(self):
        return f"Collections({dict((n, c.collection_id) for n, c in self._items.items())})"


# Ids estándar de sync 1.5
DEFAULT_COLLECTIONS = Collections.from_ids(
    {
        "clients": 1,
        "crypto": 2,
        "forms": 3,
        "history": 4,
        "keys": 5,
        "meta": 6,
        "bookmarks": 7,
        "prefs": 8,
        "tabs": 9,
        "passwords": 10,
        "addons": 11,
        "addresses": 12,
        "creditcards": 13,
    }
)

COLLECTIONS_IN_USE_SQL = """
    SELECT
        DISTINCT uc.collection_id, cc.name
    FROM
        user_collections AS uc,
        collections AS cc
    WHERE
        uc.collection_id = cc.collection_id
    ORDER BY
        uc.collection_id
"""

DEFINED_COLLECTIONS_SQL = "SELECT collection_id, name FROM collections"


def _parse_id(raw, name):
    if isinstance(raw, bool):
        raise DataError(f"Invalid collection id {raw!r} for '{name}'")
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        raise DataError(f"Invalid collection id {raw!r} for '{name}'") from None


def merge_collections(rows, defaults=None) -> Collections:
    """
    Combina los defaults con las filas (collection_id, name) del destino.

    Args:
        rows: Iterable de (id, name); id puede venir como string
        defaults: Collections base (default: DEFAULT_COLLECTIONS)

    Returns:
        Collections: Registry reconciliado (nuevo objeto, defaults no se modifica)

    Raises:
        DataError: Si algún id no es numérico
    """
    collections = (DEFAULT_COLLECTIONS if defaults is None else defaults).copy()

    # Parsear todo primero: una fila inválida invalida el registry completo
    parsed = [(_parse_id(raw_id, name), name) for raw_id, name in rows]
    destination_names = {name for _, name in parsed}

    for collection_id, name in parsed:
        clash = collections.by_id(collection_id)
        if clash is not None and clash.name != name and clash.name not in destination_names:
            logger.warning(
                f"⚠️  Default collection '{clash.name}' dropped: "
                f"id {collection_id} belongs to '{name}' in destination"
            )
            collections.remove(clash.name)
        collections.set(name, Collection(name=name, collection_id=collection_id))

    return collections


def fetch_collection_rows(channel):
    """Pares (collection_id, name) en uso en el destino, ordenados por id."""
    result = channel.execute(COLLECTIONS_IN_USE_SQL, intent="fetch collections")
    return result.rows


def reconcile(channel, defaults=None) -> Collections:
    """
    Construye el registry canónico a partir de la verdad del destino.

    Raises:
        ExecutionError: Falló la consulta
        DataError: Id no numérico en el destino
    """
    rows = fetch_collection_rows(channel)
    collections = merge_collections(rows, defaults)
    logger.info(
        f"📚 Registry reconciliado: {len(collections)} colecciones "
        f"({len(rows)} desde destino)"
    )
    return collections


def fetch_defined_collections(channel):
    """
    Pares (collection_id, name) definidos en la tabla collections del destino.

    Raises:
        ExecutionError: Falló la consulta
        DataError: Id no numérico
    """
    result = channel.execute(DEFINED_COLLECTIONS_SQL, intent="fetch defined collections")
    return [(_parse_id(raw_id, name), name) for raw_id, name in result.rows]


def align_with_catalog(channel, collections):
    """
    Ajusta el registry a la tabla collections del destino.

    - Un nombre ya definido toma el id que le da el destino.
    - Un nombre no definido cuyo id ya pertenece a otra colección recibe un id
      nuevo (mayor que todos los conocidos).
    - Los nombres no definidos se devuelven como faltantes para insertarlos.

    Returns:
        tuple: (aligned: Collections, missing: Collections)

    Raises:
        ExecutionError: Falló la consulta
        DataError: Id no numérico en el destino
    """
    defined = fetch_defined_collections(channel)
    id_by_name = {name: collection_id for collection_id, name in defined}
    taken = {collection_id for collection_id, _ in defined}
    next_id = max(taken | {c.collection_id for c in collections} | {0}) + 1

    aligned, missing = Collections(), Collections()
    for collection in collections:
        if collection.name in id_by_name:
            collection_id = id_by_name[collection.name]
            if collection_id != collection.collection_id:
                logger.warning(
                    f"⚠️  '{collection.name}' usa id {collection_id} en destino "
                    f"(registry: {collection.collection_id})"
                )
            aligned.set(collection.name, Collection(collection.name, collection_id))
            continue

        collection_id = collection.collection_id
        if collection_id in taken:
            logger.warning(
                f"⚠️  Id {collection_id} ocupado en destino: "
                f"'{collection.name}' pasa a id {next_id}"
            )
            collection_id = next_id
            next_id += 1
        taken.add(collection_id)
        entry = Collection(collection.name, collection_id)
        aligned.set(collection.name, entry)
        missing.set(collection.name, entry)

    return aligned, missing


def find_missing_collections(channel, collections) -> Collections:
    """
    Colecciones del registry que no están definidas en la tabla collections del destino.

    Los ids devueltos ya están alineados (ver align_with_catalog).

    Returns:
        Collections: Subconjunto a insertar (puede estar vacío)
    """
    return align_with_catalog(channel, collections)[1]
