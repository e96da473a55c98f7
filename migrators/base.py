"""
Interfaces base para origen y destino de la migración.

Define el contrato que nedbmigra.py espera de cada extremo. El orquestador
no conoce detalles de NeDB ni de MongoDB: solo llama a load() en el origen
y a connect()/insert()/close() en el destino.

Patrón de diseño: Strategy Pattern
- nedbmigra.py = Contexto (orquestador)
- DocumentSource / DocumentTarget = Estrategias abstractas
- NedbSource, MongoTarget = Estrategias concretas

Flujo de uso:
1. nedbmigra.py crea y conecta el destino (connect)
2. Carga el Document Set completo del origen (load)
3. Lanza un insert() por documento, todos concurrentes
4. Cierra el destino (close)
"""

from abc import ABC, abstractmethod


class DocumentSource(ABC):
    """
    Origen de documentos: entrega el Document Set completo en memoria.

    Attributes:
        corrupt_lines (int): Registros ilegibles descartados en la última
                             carga (0 si el origen no descarta nada)
    """

    corrupt_lines = 0

    @abstractmethod
    def load(self) -> list:
        """
        Carga todos los documentos del origen.

        Returns:
            list: Documentos (dicts) en el orden que entrega el origen.
                  Lista vacía si el origen no tiene datos.

        Raises:
            LoadError: Si el origen no se puede leer o está corrupto
        """
        pass


class DocumentTarget(ABC):
    """
    Destino de documentos: una colección sobre una única conexión.
    """

    @abstractmethod
    async def connect(self):
        """
        Abre la conexión y verifica que el servidor responde.

        Raises:
            TargetConnectionError: Si la conexión inicial falla
        """
        pass

    @abstractmethod
    async def insert(self, doc: dict):
        """
        Inserta un único documento.

        Raises:
            InsertError: Si el destino rechaza el documento
        """
        pass

    @abstractmethod
    def close(self):
        pass
