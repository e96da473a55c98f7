"""
Lector del datafile de NeDB.

FORMATO DEL DATAFILE:
NeDB persiste en modo append: una línea JSON por operación.
- {"_id": "abc", ...}                  → alta o nueva versión del documento
- {"_id": "abc", "$$deleted": true}    → baja del documento
- {"$$indexCreated": {"fieldName": …}} → metadata de índice (no es documento)
- {"$$indexRemoved": "campo"}          → metadata de índice (no es documento)
Las fechas se serializan como {"$$date": <epoch en ms>}.

El estado actual de la base es el resultado de aplicar todas las líneas
en orden. Este lector NO compacta ni reescribe el archivo.

Uso (desde nedbmigra.py):
    source = NedbSource('data/users.db')
    documents = source.load()   # list[dict]
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path

import config

from .base import DocumentSource
from .errors import LoadError


def _decode_special_values(obj):
    """object_hook de json: convierte {"$$date": ms} en datetime UTC."""
    if len(obj) == 1 and "$$date" in obj:
        millis = obj["$$date"]
        if isinstance(millis, (int, float)) and not isinstance(millis, bool):
            try:
                return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                # Fecha válida en JS pero fuera del rango de datetime: se conserva tal cual
                return obj
    return obj


def deserialize_line(line: str):
    """
    Decodifica una línea del datafile.

    Returns:
        dict: Objeto JSON de la línea (con fechas convertidas)

    Raises:
        ValueError: Si la línea no es un objeto JSON válido
    """
    obj = json.loads(line, object_hook=_decode_special_values)
    if not isinstance(obj, dict):
        raise ValueError("Line is not a JSON object")
    return obj


class NedbSource(DocumentSource):
    """
    Origen de documentos respaldado por un datafile de NeDB.

    Attributes:
        datafile (Path): Ruta al datafile
        corrupt_alert_threshold (float): Proporción máxima de líneas corruptas
        corrupt_lines (int): Líneas corruptas descartadas en la última carga
        indexes (dict): Índices declarados en el datafile (fieldName → opciones)
    """

    def __init__(self, datafile, corrupt_alert_threshold=None):
        self.datafile = Path(datafile)
        if corrupt_alert_threshold is None:
            corrupt_alert_threshold = config.NEDB_CORRUPT_ALERT_THRESHOLD
        self.corrupt_alert_threshold = corrupt_alert_threshold
        self.corrupt_lines = 0
        self.indexes = {}

    @property
    def backup_file(self) -> Path:
        # NeDB escribe primero en "<datafile>~" y después renombra
        return self.datafile.with_name(self.datafile.name + "~")

    def _resolve_readable_file(self) -> Path:
        """
        Devuelve el archivo a leer, creando el datafile vacío si no existe.

        Si el datafile falta pero quedó el backup de una escritura
        interrumpida, se lee el backup (sin renombrarlo).
        """
        if self.datafile.exists():
            return self.datafile
        if self.backup_file.exists():
            return self.backup_file

        self.datafile.parent.mkdir(parents=True, exist_ok=True)
        self.datafile.touch()
        return self.datafile

    def load(self) -> list:
        """
        Carga el estado actual del datafile.

        Returns:
            list: Documentos en orden de primera aparición de su _id

        Raises:
            LoadError: Si el archivo no se puede leer, no es UTF-8, o la
                       proporción de líneas corruptas supera el umbral
        """
        try:
            path = self._resolve_readable_file()
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(f"Cannot read NeDB datafile '{self.datafile}': {e}") from e

        return self._treat_raw_data(raw)

    def _treat_raw_data(self, raw: str) -> list:
        documents_by_id = {}
        indexes = {}
        corrupt = 0
        total = 0

        for line in raw.split("\n"):
            if not line.strip():
                continue
            total += 1

            try:
                doc = deserialize_line(line)
            except ValueError:
                corrupt += 1
                continue

            if "_id" in doc:
                try:
                    if doc.get("$$deleted") is True:
                        documents_by_id.pop(doc["_id"], None)
                    else:
                        documents_by_id[doc["_id"]] = doc
                except TypeError:
                    # _id no hashable: NeDB nunca lo genera así
                    corrupt += 1
            elif isinstance(doc.get("$$indexCreated"), dict):
                field_name = doc["$$indexCreated"].get("fieldName")
                if field_name is not None:
                    indexes[field_name] = doc["$$indexCreated"]
            elif isinstance(doc.get("$$indexRemoved"), str):
                indexes.pop(doc["$$indexRemoved"], None)

        if total > 0 and corrupt / total > self.corrupt_alert_threshold:
            raise LoadError(
                f"More than {self.corrupt_alert_threshold:.0%} of the data in "
                f"'{self.datafile}' is corrupt ({corrupt}/{total} lines), "
                f"the wrong file may have been used"
            )

        self.corrupt_lines = corrupt
        self.indexes = indexes
        return list(documents_by_id.values())

    def __repr__(self):
        return f"NedbSource({os.fspath(self.datafile)!r})"
