r"""
Script principal de migración de un datafile NeDB a una colección MongoDB.

Arquitectura:
- nedbmigra.py: Orquestación (CLI, secuencia, progreso, códigos de salida)
- migrators/nedb_source.py: Lectura del datafile NeDB
- migrators/mongo_target.py: Inserción en MongoDB (motor, asíncrono)
- config.py: Construcción y validación de la configuración

Flujo de ejecución:
1. Validar argumentos (faltante → exit 1, sin conectar a nada)
2. Conectar a MongoDB (fatal si falla)
3. Cargar TODOS los documentos de NeDB en memoria (fatal si falla)
4. Si no hay documentos: nada que hacer, exit 0
5. Lanzar un insert por documento, todos a la vez (sin límite de concurrencia)
6. Esperar a que terminen todos; si alguno falló, exit 1 citando el primero

No hay reintentos ni rollback: si falla un insert, los demás quedan
insertados. Volver a correr inserta todo de nuevo.

Uso:
    python nedbmigra.py -d app -c users -n data/users.db -k false
    python nedbmigra.py -h cluster0.example.net -u admin -p secret \
        -d app -c users -n data/users.db -k true
"""

import argparse
import asyncio
import io
import sys
import traceback
from dataclasses import dataclass, field

import config
from migrators import (
    InsertError,
    LoadError,
    MongoTarget,
    NedbSource,
    TargetConnectionError,
    build_mongo_uri,
    redact_uri,
)


@dataclass
class MigrationResult:
    """
    Resultado agregado de la fase de inserción.

    Attributes:
        attempted: Documentos para los que se lanzó un insert
        inserted: Inserts exitosos
        errors: InsertError de cada documento rechazado, en orden de llegada
    """

    attempted: int = 0
    inserted: int = 0
    errors: list = field(default_factory=list)

    @property
    def first_error(self):
        return self.errors[0] if self.errors else None

    @property
    def success(self) -> bool:
        return not self.errors


class ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser que sale con código 1 ante argumentos inválidos."""

    def error(self, message):
        self.print_usage(sys.stderr)
        print(f"❌ {message}", file=sys.stderr)
        sys.exit(1)


def build_parser():
    """
    Define los flags de línea de comandos.

    -h es el host de MongoDB, por eso la ayuda solo está en --help.
    """
    parser = ArgumentParser(
        prog="nedbmigra",
        description="Migra todos los documentos de un datafile NeDB a una colección MongoDB.",
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="Muestra esta ayuda y sale")
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {config.VERSION}"
    )
    parser.add_argument(
        "-h",
        "--mongodb-host",
        dest="host",
        metavar="HOST",
        help=f"Host de MongoDB (default: {config.DEFAULT_MONGODB_HOST})",
    )
    parser.add_argument(
        "-u", "--mongodb-username", dest="username", metavar="USERNAME",
        help="Usuario de MongoDB",
    )
    parser.add_argument(
        "-p", "--mongodb-password", dest="password", metavar="PASSWORD",
        help="Password del usuario de MongoDB",
    )
    parser.add_argument(
        "--mongodb-port",
        dest="port",
        metavar="PORT",
        help="Puerto de MongoDB; sin puerto se usa mongodb+srv://",
    )
    parser.add_argument(
        "-d", "--mongodb-dbname", dest="dbname", metavar="NAME",
        help="Base de datos destino (obligatorio)",
    )
    parser.add_argument(
        "-c", "--mongodb-collection", dest="collection", metavar="NAME",
        help="Colección destino (obligatorio)",
    )
    parser.add_argument(
        "-n", "--nedb-datafile", dest="datafile", metavar="PATH",
        help="Ruta al datafile de NeDB (obligatorio)",
    )
    parser.add_argument(
        "-k",
        "--keep-ids",
        dest="keep_ids",
        metavar="true/false",
        help="Conservar los _id de NeDB o dejar que MongoDB genere ObjectIds (obligatorio)",
    )
    return parser


def parse_config(argv=None, environ=None):
    """
    Parsea argumentos y construye la configuración.

    Raises:
        SystemExit(1): Si falta un parámetro obligatorio o alguno es inválido
    """
    args = build_parser().parse_args(argv)
    try:
        return config.build_config(vars(args), environ)
    except config.ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)


async def connect_to_mongo(cfg, target=None):
    """
    Conecta al destino.

    Returns:
        DocumentTarget: Destino conectado

    Raises:
        TargetConnectionError: Si no puede conectar
    """
    if target is None:
        uri = build_mongo_uri(cfg)
        target = MongoTarget(uri, cfg.dbname, cfg.collection, keep_ids=cfg.keep_ids)
        print(f"🔌 Connecting to {redact_uri(uri)}")
    else:
        print("🔌 Connecting to MongoDB...")

    await target.connect()
    print("✅ Connected")
    return target


def load_nedb_documents(cfg, source=None):
    """
    Carga el Document Set completo.

    Raises:
        LoadError: Si el datafile no se puede leer o está corrupto
    """
    if source is None:
        source = NedbSource(cfg.datafile)

    documents = source.load()

    if source.corrupt_lines:
        print(f"⚠️  Skipped {source.corrupt_lines} corrupt line(s) in {cfg.datafile}")
    return documents


async def insert_all(target, documents):
    """
    Inserta todos los documentos concurrentemente.

    Todos los inserts se lanzan sin esperar a los anteriores; después se
    espera a que terminen todos, incluso si alguno falla.

    Args:
        target: DocumentTarget conectado
        documents: Lista de documentos

    Returns:
        MigrationResult: Conteos y errores en orden de llegada
    """
    result = MigrationResult()
    tasks = []

    for doc in documents:
        print(".", end="", flush=True)
        tasks.append(asyncio.ensure_future(target.insert(doc)))
        result.attempted += 1

    for finished in asyncio.as_completed(tasks):
        try:
            await finished
            result.inserted += 1
        except InsertError as e:
            result.errors.append(e)
        except Exception as e:
            # Un error inesperado solo invalida su propio documento
            result.errors.append(
                InsertError(f"Unexpected error while inserting: {e!r}", cause=e)
            )

    print("")
    return result


async def migrate(cfg, target=None, source=None) -> bool:
    """
    Orquesta la corrida completa.

    Returns:
        bool: True si no hubo nada que migrar o todos los inserts fueron OK

    Raises:
        TargetConnectionError, LoadError: Errores fatales
    """
    target = await connect_to_mongo(cfg, target)

    try:
        documents = load_nedb_documents(cfg, source)

        if not documents:
            print(
                f"ℹ️  The NeDB database at {cfg.datafile} contains no data, no work required"
            )
            print("   You should probably check the NeDB datafile path though!")
            return True

        print(
            f"📦 Loaded data from the NeDB database at {cfg.datafile}, "
            f"{len(documents):,} documents"
        )
        print("⏳ Inserting documents (every dot represents one document) ...")

        result = await insert_all(target, documents)

        if result.success:
            print(f"✅ Everything went fine: {result.inserted:,} documents inserted")
            return True

        print("❌ An error happened while inserting data", file=sys.stderr)
        print(f"   Detalle: {result.first_error}", file=sys.stderr)
        print(
            f"   {len(result.errors):,} of {result.attempted:,} documents failed, "
            f"{result.inserted:,} inserted (not rolled back)",
            file=sys.stderr,
        )
        return False

    finally:
        target.close()


def run_migration(cfg, target=None, source=None) -> bool:
    """
    Ejecuta migrate() en un event loop nuevo y traduce errores fatales.

    Returns:
        bool: True si la corrida fue exitosa
    """
    try:
        return asyncio.run(migrate(cfg, target, source))
    except TargetConnectionError as e:
        print("❌ Couldn't connect to the Mongo database", file=sys.stderr)
        print(f"   Detalle: {e.__cause__ or e}", file=sys.stderr)
        return False
    except LoadError as e:
        print("❌ Error while loading the data from the NeDB database", file=sys.stderr)
        print(f"   Detalle: {e}", file=sys.stderr)
        return False


def main(argv=None, environ=None):
    """
    Punto de entrada: parsea argumentos, migra y sale.

    Exit Codes:
        0: Éxito (incluye datafile vacío)
        1: Argumento faltante/inválido, error de conexión, error de carga
           o al menos un insert fallido
    """
    cfg = parse_config(argv, environ)

    print("=" * 70)
    print("🚀 MIGRACIÓN NEDB → MONGODB")
    print("=" * 70)
    print(f"📍 NeDB: {cfg.datafile}")
    print(f"📍 MongoDB: {cfg.dbname}.{cfg.collection}")
    print(f"🏷️  Keep ids: {'yes' if cfg.keep_ids else 'no (MongoDB generates ObjectIds)'}")

    try:
        success = run_migration(cfg)
    except Exception as e:
        print(f"\n❌ Error durante la migración: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)

    sys.exit(0 if success else 1)


def cli():
    # Forzar UTF-8 en stdout/stderr para emojis en Windows
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8")
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding="utf-8")
    main()


if __name__ == "__main__":
    cli()
