"""
Configuración centralizada para la migración NeDB → MongoDB.

ORIGEN DE LOS VALORES:
Cada parámetro se toma, en orden de prioridad, de:
1. Argumento de línea de comandos (--mongodb-host, --nedb-datafile, ...)
2. Variable de entorno (o archivo .env cargado con python-dotenv)
3. Valor por defecto de este módulo (solo host)

La configuración se construye UNA sola vez al arrancar (build_config) y
nunca se modifica durante la corrida.

USO DE LAS FUNCIONES HELPER:
    # Construir configuración desde argumentos ya parseados
    cfg = build_config(vars(args))
    print(cfg.dbname, cfg.keep_ids)

    # Variables de entorno equivalentes a un flag
    ENV_VARS['dbname']  # 'MONGODB_DBNAME'
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Carga las variables del archivo .env (sin pisar las ya definidas)
load_dotenv()

VERSION = "0.1.0"

# --- Configuración de MongoDB (Destino) ---
DEFAULT_MONGODB_HOST = "localhost"
IDENTIFIER_FIELD = "_id"

# --- Configuración de NeDB (Origen) ---
# Proporción máxima de líneas corruptas tolerada al cargar el datafile
# (mismo valor por defecto que NeDB)
NEDB_CORRUPT_ALERT_THRESHOLD = 0.1

# --- Variables de entorno por parámetro ---
ENV_VARS = {
    "host": "MONGODB_HOST",
    "username": "MONGODB_USERNAME",
    "password": "MONGODB_PASSWORD",
    "port": "MONGODB_PORT",
    "dbname": "MONGODB_DBNAME",
    "collection": "MONGODB_COLLECTION",
    "datafile": "NEDB_DATAFILE",
    "keep_ids": "KEEP_IDS",
}

# Parámetros obligatorios y mensaje a mostrar si faltan (en orden de chequeo)
REQUIRED_PARAMS = {
    "dbname": "No MongoDB database name provided, can't proceed.",
    "collection": "No MongoDB collection name provided, can't proceed.",
    "datafile": "No NeDB datafile path provided, can't proceed.",
    "keep_ids": "The --keep-ids option wasn't used or not explicitly initialized.",
}


class ConfigError(ValueError):
    """Parámetro de configuración ausente o inválido."""


@dataclass(frozen=True)
class MigrationConfig:
    """
    Parámetros de conexión y de la migración, validados al arrancar.

    Attributes:
        host: Host de MongoDB (o nombre DNS del cluster si no hay puerto)
        port: Puerto; si es None se usa el esquema mongodb+srv
        username: Usuario de MongoDB (opcional)
        password: Password de MongoDB (opcional, solo se usa con username)
        dbname: Base de datos destino
        collection: Colección destino
        datafile: Ruta al datafile de NeDB
        keep_ids: True para conservar los _id de NeDB
    """

    host: str
    port: Optional[int]
    username: Optional[str]
    password: Optional[str]
    dbname: str
    collection: str
    datafile: str
    keep_ids: bool


def resolve_params(cli_values: dict, environ=None) -> dict:
    """
    Combina valores de CLI con variables de entorno.

    Un valor de CLI vacío o None cae al valor de entorno correspondiente.

    Args:
        cli_values: Dict con keys de ENV_VARS (ej: {'dbname': 'app', ...})
        environ: Mapping de entorno (por defecto os.environ)

    Returns:
        dict: Valores crudos (strings o None) para cada parámetro
    """
    if environ is None:
        environ = os.environ

    resolved = {}
    for param, env_name in ENV_VARS.items():
        value = cli_values.get(param)
        if value is None or value == "":
            value = environ.get(env_name) or None
        resolved[param] = value
    return resolved


def parse_keep_ids(value: str) -> bool:
    """
    Interpreta el flag --keep-ids. Solo acepta 'true' o 'false' literales.

    Raises:
        ConfigError: Si el valor es otro
    """
    if value == "true":
        return True
    if value == "false":
        return False
    raise ConfigError(
        f"Invalid value for --keep-ids: '{value}' (expected 'true' or 'false')"
    )


def parse_port(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid MongoDB port: '{value}'")
    if not 0 < port < 65536:
        raise ConfigError(f"MongoDB port out of range: {port}")
    return port


def build_config(cli_values: dict, environ=None) -> MigrationConfig:
    """
    Construye y valida la configuración de la corrida.

    Args:
        cli_values: Valores parseados de la línea de comandos
        environ: Mapping de entorno (por defecto os.environ)

    Returns:
        MigrationConfig: Configuración inmutable

    Raises:
        ConfigError: Si falta un parámetro obligatorio o alguno es inválido.
                     El mensaje es el que se muestra al usuario.

    Ejemplo:
        >>> cfg = build_config({'dbname': 'app', 'collection': 'users',
        ...                     'datafile': 'users.db', 'keep_ids': 'false'},
        ...                    environ={})
        >>> cfg.host, cfg.port, cfg.keep_ids
        ('localhost', None, False)
    """
    params = resolve_params(cli_values, environ)

    for param, message in REQUIRED_PARAMS.items():
        if not params[param]:
            raise ConfigError(message)

    return MigrationConfig(
        host=params["host"] or DEFAULT_MONGODB_HOST,
        port=parse_port(params["port"]),
        username=params["username"],
        password=params["password"],
        dbname=params["dbname"],
        collection=params["collection"],
        datafile=params["datafile"],
        keep_ids=parse_keep_ids(params["keep_ids"]),
    )
