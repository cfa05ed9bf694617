"""
Errores de la capa de repositorio.
La capa HTTP es la que los traduce a códigos de estado (ver main.py).
"""
from typing import Any, Optional


class RepositoryError(Exception):
    pass


class StorageError(RepositoryError):
    """Fallo del almacén (conexión, validación, escritura). `payload` guarda el error original."""

    def __init__(self, message: str, payload: Optional[Any] = None):
        super().__init__(message)
        self.payload = payload


class RecordNotFoundError(StorageError):
    pass


class UnsafeDeleteError(RepositoryError):
    """Borrado sin filtro y sin `force`: se rechaza para no vaciar la colección."""
