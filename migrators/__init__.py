"""
Origen y destino de la migración NeDB → MongoDB.

Estructura:
    base.py: Interfaces DocumentSource y DocumentTarget
    errors.py: Excepciones (LoadError, TargetConnectionError, InsertError)
    nedb_source.py: Lector del datafile de NeDB
    mongo_target.py: Escritor sobre una colección de MongoDB (motor)

Ambos extremos son instanciados por nedbmigra.py y viven solo durante
la corrida.
"""

from .errors import InsertError, LoadError, TargetConnectionError
from .mongo_target import MongoTarget, build_mongo_uri, redact_uri
from .nedb_source import NedbSource

__all__ = [
    "InsertError",
    "LoadError",
    "MongoTarget",
    "NedbSource",
    "TargetConnectionError",
    "build_mongo_uri",
    "redact_uri",
]
