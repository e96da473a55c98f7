"""
Escritor de documentos sobre una colección de MongoDB.

Usa el driver asíncrono motor (AsyncIOMotorClient) para que todos los
inserts corran concurrentemente sobre un único event loop y una única
conexión (pool del cliente).

CADENA DE CONEXIÓN:
- Con puerto:  mongodb://[user[:pass]@]host:port/dbname
- Sin puerto:  mongodb+srv://[user[:pass]@]host/dbname  (descubrimiento DNS)

Uso (desde nedbmigra.py):
    target = MongoTarget(build_mongo_uri(cfg), cfg.dbname, cfg.collection,
                         keep_ids=cfg.keep_ids)
    await target.connect()
    await target.insert({'_id': 'abc', 'name': 'x'})
    target.close()
"""

from urllib.parse import quote_plus

from bson.errors import BSONError
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

import config

from .base import DocumentTarget
from .errors import InsertError, TargetConnectionError


def build_mongo_uri(cfg) -> str:
    """
    Arma la URI de conexión a partir de la configuración.

    Usuario y password se escapan con quote_plus (requisito de pymongo
    para caracteres como '@' o ':').

    Args:
        cfg: MigrationConfig

    Returns:
        str: URI de MongoDB

    Ejemplo:
        >>> build_mongo_uri(cfg)  # host='db.local', port=27017, sin usuario
        'mongodb://db.local:27017/app'
    """
    auth = ""
    if cfg.username:
        auth += quote_plus(cfg.username)
        if cfg.password:
            auth += f":{quote_plus(cfg.password)}"
        auth += "@"

    if cfg.port:
        return f"mongodb://{auth}{cfg.host}:{cfg.port}/{cfg.dbname}"
    return f"mongodb+srv://{auth}{cfg.host}/{cfg.dbname}"


def redact_uri(uri: str) -> str:
    """Oculta el password de la URI para mostrarla en consola."""
    scheme, sep, rest = uri.partition("://")
    if not sep or "@" not in rest:
        return uri

    credentials, host_part = rest.rsplit("@", 1)
    if ":" in credentials:
        username = credentials.split(":", 1)[0]
        credentials = f"{username}:****"
    return f"{scheme}://{credentials}@{host_part}"


class MongoTarget(DocumentTarget):
    """
    Destino de la migración: una colección de MongoDB.

    Attributes:
        uri (str): URI de conexión
        dbname (str): Base de datos destino
        collection_name (str): Colección destino
        keep_ids (bool): False para quitar _id y dejar que MongoDB genere ObjectIds
    """

    def __init__(self, uri, dbname, collection_name, keep_ids, client_factory=None):
        self.uri = uri
        self.dbname = dbname
        self.collection_name = collection_name
        self.keep_ids = keep_ids
        self._client_factory = client_factory or AsyncIOMotorClient
        self.client = None
        self.collection = None

    async def connect(self):
        """
        Crea el cliente y verifica la conexión con un ping.

        Raises:
            TargetConnectionError: Ante cualquier error del driver
                                   (URI inválida, servidor inalcanzable, auth)
        """
        try:
            self.client = self._client_factory(self.uri)
            await self.client.admin.command("ping")
        except PyMongoError as e:
            self.close()
            raise TargetConnectionError(
                f"Couldn't connect to the Mongo database: {e}"
            ) from e

        self.collection = self.client[self.dbname][self.collection_name]

    def prepare_document(self, doc: dict) -> dict:
        """
        Copia del documento lista para insertar.

        Se trabaja sobre una copia porque insert_one agrega _id al dict
        recibido.
        """
        prepared = dict(doc)
        if not self.keep_ids:
            prepared.pop(config.IDENTIFIER_FIELD, None)
        return prepared

    async def insert(self, doc: dict):
        """
        Inserta un documento con insert_one.

        Returns:
            _id asignado al documento en MongoDB

        Raises:
            InsertError: Si MongoDB rechaza el documento o el driver no puede
                         codificarlo a BSON (ej: enteros de más de 8 bytes)
        """
        if self.collection is None:
            raise TargetConnectionError("Target is not connected, call connect() first")

        prepared = self.prepare_document(doc)
        try:
            result = await self.collection.insert_one(prepared)
        except (PyMongoError, BSONError, OverflowError) as e:
            doc_id = doc.get(config.IDENTIFIER_FIELD)
            raise InsertError(
                f"Document {doc_id!r} rejected: {e}", doc_id=doc_id, cause=e
            ) from e
        return result.inserted_id

    def close(self):
        if self.client is not None:
            self.client.close()
            self.client = None
            self.collection = None
