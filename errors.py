"""
Taxonomía de errores del migrador de sync storage.

Separa los errores fatales (configuración, conexión, registry corrupto) de los
recuperables por usuario (ejecución de una sentencia o lectura del origen).

    ConfigurationError   → DSN faltante o inválido, archivo FxA ilegible (fatal)
    StoreConnectionError → no se pudo abrir canal/sesión contra un store (fatal al inicio)
    ExecutionError       → falló una sentencia o un fetch (recuperable por usuario)
    DataError            → id de colección no numérico al reconciliar (fatal)
"""


class MigrationError(Exception):
    """Base de todos los errores del migrador."""


class ConfigurationError(MigrationError):
    pass


class StoreConnectionError(MigrationError):
    pass


class ExecutionError(MigrationError):
    """
    Falla de una sentencia contra el destino o de un fetch contra el origen.

    Attributes:
        intent: Descripción corta de lo que se intentaba (ej: 'insert bso')
    """

    def __init__(self, intent, detail):
        self.intent = intent
        self.detail = str(detail)
        super().__init__(f"{intent} failed: {self.detail}")


class DataError(MigrationError):
    pass
