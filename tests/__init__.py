"""
Suite de tests para la migración NeDB → MongoDB.

Los tests NO conectan a un MongoDB real, solo validan:
- Sintaxis de código Python
- Construcción y validación de configuración
- Lectura del datafile NeDB
- Inserción contra una colección en memoria
- Orquestación completa y códigos de salida
"""
