"""
Suite de tests para el migrador de sync storage MySQL → Spanner.

Los tests NO tocan bases reales: el canal destino, el store de origen y las
conexiones DB-API se reemplazan por dobles en memoria (ver helpers.py).
"""
