from fastapi import Depends, HTTPException, Request, status
from fertistock.models.user import User
from fertistock.routers.auth import get_current_user
from fertistock.utils.validation import is_admin_user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Verifica si el usuario es administrador. Si no lo es, lanza una excepción."""
    if not is_admin_user(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos para realizar esta acción.",
        )
    return user


def get_default_branch_id(request: Request) -> int:
    """Sucursal por defecto resuelta al arrancar la aplicación."""
    branch_id = getattr(request.app.state, "default_branch_id", None)
    if branch_id is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="La sucursal por defecto no está configurada.",
        )
    return branch_id
