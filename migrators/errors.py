"""
Excepciones de la migración NeDB → MongoDB.

Dos niveles:
- Fatales (LoadError, TargetConnectionError): abortan la corrida antes de
  insertar nada.
- Por documento (InsertError): no detienen los demás inserts, pero la
  corrida termina con código 1.
"""


class MigrationError(Exception):
    """Base de todos los errores de migración."""


class LoadError(MigrationError):
    """El datafile de NeDB no se pudo leer o está corrupto."""


class TargetConnectionError(MigrationError):
    """No se pudo establecer la conexión inicial con MongoDB."""


class InsertError(MigrationError):
    """
    MongoDB rechazó un documento (clave duplicada, validación, etc).

    Attributes:
        doc_id: _id del documento original en NeDB (None si no tenía)
        cause: Excepción original del driver
    """

    def __init__(self, message, doc_id=None, cause=None):
        super().__init__(message)
        self.doc_id = doc_id
        self.cause = cause
