"""
Mapeo de usuarios legacy a identidades Firefox Accounts.

El origen MySQL solo conoce el uid numérico del tokenserver. El destino
indexa por (fxa_uid, fxa_kid), que se derivan del export CSV del tokenserver:

    uid,email,generation,keys_changed_at,client_state
    1234,0123abcd@api.accounts.firefox.com,1565000000000,1565000000000,aabbcc...

- fxa_uid: parte local del email
- fxa_kid: '<keys_changed_at o generation, 13 dígitos>-<client_state en base64url sin padding>'
"""

import base64
import csv
import logging
from dataclasses import dataclass

from errors import ConfigurationError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("uid", "email", "generation", "keys_changed_at", "client_state")


@dataclass(frozen=True)
class FxaData:
    fxa_uid: str
    fxa_kid: str


def make_fxa_kid(keys_changed_at, generation, client_state):
    """
    Deriva el key id de FxA.

    Ejemplo:
        >>> make_fxa_kid(1565000000000, 0, "aabb")
        '1565000000000-qrs'
    """
    timestamp = keys_changed_at or generation or 0
    try:
        raw = bytes.fromhex(client_state)
    except ValueError:
        raise ValueError(f"client_state is not hex: {client_state!r}") from None
    encoded = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    return f"{int(timestamp):013d}-{encoded}"


class FxaInfo:
    """
    Tabla uid → FxaData cargada del CSV.

    Attributes:
        users (dict): {uid: FxaData}
    """

    def __init__(self, users=None):
        self.users = dict(users or {})

    @classmethod
    def from_csv(cls, path):
        """
        Carga el export del tokenserver.

        Raises:
            ConfigurationError: Archivo inexistente, columnas faltantes o filas inválidas
        """
        users = {}
        try:
            with open(path, newline="", encoding="utf-8") as handle:
                reader = csv.DictReader(handle)
                missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
                if missing:
                    raise ConfigurationError(
                        f"FxA file '{path}' missing columns: {', '.join(missing)}"
                    )
                for line, row in enumerate(reader, start=2):
                    try:
                        uid = int(row["uid"])
                        users[uid] = FxaData(
                            fxa_uid=row["email"].split("@", 1)[0],
                            fxa_kid=make_fxa_kid(
                                int(row["keys_changed_at"] or 0),
                                int(row["generation"] or 0),
                                row["client_state"] or "",
                            ),
                        )
                    except (TypeError, ValueError) as e:
                        raise ConfigurationError(
                            f"FxA file '{path}' line {line}: {e}"
                        ) from e
        except OSError as e:
            raise ConfigurationError(f"Could not read FxA file '{path}': {e}") from e

        logger.info(f"👥 {len(users):,} identidades FxA cargadas desde {path}")
        return cls(users)

    def get(self, uid):
        return self.users.get(uid)

    def __len__(self):
        return len(self.users)
