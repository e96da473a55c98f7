"""
Funciones helper compartidas para todos los tests.

Proporciona dobles en memoria del cliente motor (para no necesitar un
MongoDB real) y utilidades para escribir datafiles NeDB de prueba.
"""

import asyncio
import json
import os
import sys

import bson
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError, WriteError
from pymongo.results import InsertOneResult

# Agregar directorio raíz al path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config


def make_config(**overrides):
    """MigrationConfig válida con valores de prueba."""
    values = {
        "host": "localhost",
        "port": 27017,
        "username": None,
        "password": None,
        "dbname": "testdb",
        "collection": "items",
        "datafile": "items.db",
        "keep_ids": False,
    }
    values.update(overrides)
    return config.MigrationConfig(**values)


def write_datafile(path, lines):
    """
    Escribe un datafile NeDB.

    Args:
        path: Ruta del archivo
        lines: Lista de dicts (se serializan a JSON) o strings (se escriben tal cual)
    """
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            if isinstance(line, dict):
                line = json.dumps(line)
            f.write(line + "\n")


class FakeCollection:
    """
    Colección en memoria con la interfaz asíncrona de motor.

    - Genera ObjectId si el documento no trae _id (y lo agrega al dict,
      como hace pymongo)
    - Rechaza _id duplicados con DuplicateKeyError
    - reject: predicado opcional; si devuelve True el insert falla con WriteError
    - delay: función opcional doc → segundos a esperar antes de responder
    - encode_bson: True para codificar el documento con bson.encode antes de
      aceptarlo, como hace el driver real
    """

    def __init__(self, reject=None, delay=None, encode_bson=False):
        self.encode_bson = encode_bson
        self.documents = {}
        self.insert_calls = 0
        self.reject = reject
        self.delay = delay

    async def insert_one(self, document):
        self.insert_calls += 1

        if self.delay is not None:
            await asyncio.sleep(self.delay(document))
        else:
            await asyncio.sleep(0)

        if self.encode_bson:
            bson.encode(document)

        if self.reject is not None and self.reject(document):
            raise WriteError("Document failed validation", code=121)

        if "_id" not in document:
            document["_id"] = ObjectId()

        if document["_id"] in self.documents:
            raise DuplicateKeyError(
                f"E11000 duplicate key error dup key: {{ _id: {document['_id']!r} }}",
                code=11000,
            )

        self.documents[document["_id"]] = dict(document)
        return InsertOneResult(document["_id"], acknowledged=True)

    def find_all(self):
        return list(self.documents.values())


class _FakeAdmin:
    def __init__(self, client):
        self._client = client

    async def command(self, name):
        self._client.commands.append(name)
        if self._client.unreachable:
            raise ServerSelectionTimeoutError("localhost:27017: [Errno 111] Connection refused")
        return {"ok": 1.0}


class FakeMotorClient:
    """
    Cliente en memoria con la forma de AsyncIOMotorClient.

    client[dbname][collection] devuelve siempre la misma FakeCollection.
    """

    def __init__(self, uri=None, collection=None, unreachable=False):
        self.uri = uri
        self.collection = collection if collection is not None else FakeCollection()
        self.unreachable = unreachable
        self.commands = []
        self.closed = False
        self.admin = _FakeAdmin(self)
        self.accessed = []

    def __getitem__(self, dbname):
        client = self

        class _Database:
            def __getitem__(self, collection_name):
                client.accessed.append((dbname, collection_name))
                return client.collection

        return _Database()

    def close(self):
        self.closed = True


def fake_client_factory(collection=None, unreachable=False):
    """
    Devuelve (factory, clientes_creados) para inyectar en MongoTarget.
    """
    created = []

    def factory(uri):
        client = FakeMotorClient(uri, collection=collection, unreachable=unreachable)
        created.append(client)
        return client

    return factory, created
