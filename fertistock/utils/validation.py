from fertistock.models.user import User
import unicodedata


def is_admin_user(user: User) -> bool:
    """Devuelve True si el usuario es administrador, False en caso contrario."""
    return user.role.lower() == "admin"


def normalize_name(name: str) -> str:
    """Normaliza un nombre de categoría: sin tildes, sin espacios extra y capitalizado."""
    name = " ".join(name.split())
    name = "".join(
        c for c in unicodedata.normalize("NFD", name) if unicodedata.category(c) != "Mn"
    )
    return name.capitalize()
