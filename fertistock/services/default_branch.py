import logging
from sqlmodel import Session, select
from fertistock.models.branch import Branch
from fertistock.utils.settings import DEFAULT_BRANCH_CODE, DEFAULT_BRANCH_NAME

logger = logging.getLogger(__name__)


def resolve_default_branch(
    db: Session, code: str = DEFAULT_BRANCH_CODE, name: str = DEFAULT_BRANCH_NAME
) -> int:
    """Devuelve el id de la sucursal por defecto, creándola si aún no existe."""
    branch = db.exec(select(Branch).where(Branch.code == code)).first()
    if branch:
        return branch.id

    branch = Branch(code=code, name=name, active=True)
    db.add(branch)
    db.commit()
    db.refresh(branch)
    logger.info("Sucursal por defecto creada: %s (%s)", code, branch.id)
    return branch.id
