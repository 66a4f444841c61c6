"""
Configuración de la aplicación leída del entorno (.env).

Los valores se resuelven una sola vez al importar el módulo; la sucursal por
defecto se materializa en base de datos al arrancar (ver `resolve_default_branch`).
"""

from fertistock.utils.getenv import get_bool_env, get_env, get_required_env

DATABASE_URL = get_required_env("DATABASE_URL")
SQL_ECHO = get_bool_env("SQL_ECHO", False)

# Sucursal usada cuando una entrada de stock no indica ninguna
DEFAULT_BRANCH_CODE = get_env("DEFAULT_BRANCH_CODE", "PRINCIPAL")
DEFAULT_BRANCH_NAME = get_env("DEFAULT_BRANCH_NAME", "Sucursal principal")

# Umbral para el filtro de stock bajo
LOW_STOCK_THRESHOLD = int(get_env("LOW_STOCK_THRESHOLD", "50"))

CORS_ORIGINS = [
    origin.strip()
    for origin in get_env("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

LOG_LEVEL = get_env("LOG_LEVEL", "INFO").upper()
