"""
Configuración de logging del migrador.

Dos modos:
- human: una línea por evento, solo el mensaje (salida de consola con emojis)
- structured: un objeto JSON por línea, apto para ingestión en un colector
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Campos estándar de LogRecord que no se copian como 'extra'
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Serializa cada registro como JSON, incluyendo los campos pasados en extra=."""

    def format(self, record):
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging(human_logs: bool = True, level: int = logging.INFO) -> None:
    """
    Configura el logging raíz de la aplicación.

    Args:
        human_logs: True para texto plano, False para JSON por línea
        level: Nivel mínimo (logging.DEBUG con --verbose)
    """
    handler = logging.StreamHandler(sys.stderr)
    if human_logs:
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)
