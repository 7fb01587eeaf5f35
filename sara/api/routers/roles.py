from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sara.api.deps import get_db
import sara.repositories.role as role_repo
from sara.schemas.role import Role

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=list[Role])
def list_roles(db: Session = Depends(get_db)):
    """Roles available on the platform: admin, landlord and tenant. Public, used by the signup form."""
    return [Role.model_validate(role) for role in role_repo.get_all_roles(db)]
