from dotenv import (
    load_dotenv,
)  # Para cargar variables de entorno desde un archivo .env.
import os  # Para acceder a variables de entorno.

load_dotenv()


def get_required_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"La variable de entorno {name} es obligatoria y no está definida.")
    return value


def get_env(name: str, default: str) -> str:
    """Devuelve la variable de entorno o el valor por defecto si está vacía."""
    value = os.getenv(name)
    return value if value else default


def get_bool_env(name: str, default: bool = False) -> bool:
    return get_env(name, str(default)).lower() in {"1", "true", "yes", "si", "sí"}
