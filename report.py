"""
Reporte agregado de una corrida de migración.

Cada usuario se migra como una unidad independiente: su falla queda
registrada como (shard, uid, fase, error) y la corrida sigue con el
siguiente. Al final el reporte resume éxitos y fallas por shard.

Estados:
    success → ningún usuario ni shard falló
    partial → hubo fallas pero también usuarios migrados
    failure → hubo fallas y ningún usuario migrado
"""

from collections import defaultdict, namedtuple

Failure = namedtuple("Failure", ["shard", "uid", "phase", "message"])

SUCCESS = "success"
PARTIAL = "partial"
FAILURE = "failure"


class MigrationReport:
    def __init__(self):
        self.migrated_users = 0
        self.collections = 0
        self.bsos = 0
        self.failures = []
        self.skipped = []
        self.shards_visited = []
        self.cancelled = False
        self._per_shard = defaultdict(lambda: {"migrated": 0, "failed": 0, "skipped": 0})

    def shard_started(self, shard):
        self.shards_visited.append(shard)

    def record_success(self, shard, uid, collections, bsos):
        self.migrated_users += 1
        self.collections += collections
        self.bsos += bsos
        self._per_shard[shard]["migrated"] += 1

    def record_failure(self, shard, uid, phase, error):
        """uid es None cuando falló el shard completo (ej: listado de usuarios)."""
        self.failures.append(Failure(shard, uid, phase, str(error)))
        self._per_shard[shard]["failed"] += 1

    def record_skipped(self, shard, uids):
        self.skipped.extend((shard, uid) for uid in uids)
        self._per_shard[shard]["skipped"] += len(uids)

    @property
    def status(self):
        if not self.failures:
            return SUCCESS
        if self.migrated_users:
            return PARTIAL
        return FAILURE

    def failed_users(self):
        return [(f.shard, f.uid) for f in self.failures if f.uid is not None]

    def summary_lines(self):
        """Líneas de resumen para imprimir al final de la corrida."""
        lines = [
            f"Usuarios migrados: {self.migrated_users:,}",
            f"Colecciones: {self.collections:,} | BSOs: {self.bsos:,}",
            f"Usuarios sin identidad FxA: {len(self.skipped):,}",
            f"Fallas: {len(self.failures):,}",
        ]
        for shard in self.shards_visited:
            counts = self._per_shard[shard]
            lines.append(
                f"   bso{shard}: {counts['migrated']} ok, "
                f"{counts['failed']} fallidos, {counts['skipped']} omitidos"
            )
        for failure in self.failures:
            who = "shard completo" if failure.uid is None else f"usuario {failure.uid}"
            lines.append(
                f"   ❌ bso{failure.shard} {who} [{failure.phase}]: {failure.message}"
            )
        if self.cancelled:
            lines.append("   🛑 Corrida cancelada por el operador")
        return lines
