"""
Migradores de tablas del destino Spanner.

Cada migrador implementa la interfaz BaseMigrator y se carga dinámicamente
según la tabla (ver config.DESTINATION_TABLES y load_migrator_for_table()
en syncmigra.py).

Estructura:
    base.py: Clase abstracta BaseMigrator
    catalog.py: Migrador para la tabla collections (catálogo global)
    user_collections.py: Migrador para user_collections (fase 1 por usuario)
    bso.py: Migrador para bso (fase 2 por usuario)

Interfaz requerida (ver BaseMigrator):
    - extract_data(user, items, collections)
    - build_statements(rows)       (heredado)
    - insert_batches(rows, channel) (heredado)
"""
