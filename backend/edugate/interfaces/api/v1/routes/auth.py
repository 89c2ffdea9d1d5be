from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from edugate.application.errors import UnauthenticatedError
from edugate.application.services.demo_service import DemoMode
from edugate.application.services.identity_service import identity_from_principal
from edugate.application.services.security_service import authenticate_principal, create_access_token
from edugate.infrastructure.db.session import get_db
from edugate.infrastructure.logging import get_logger
from edugate.interfaces.api.v1.dependencies.auth import get_demo_mode
from edugate.interfaces.api.v1.schemas.auth import TokenResponse

router = APIRouter(prefix="/auth", tags=["auth"])
logger = get_logger(__name__)


@router.post(
    "/token",
    response_model=TokenResponse,
    summary="Issue access token",
    description="Authenticate with email/password form data and return a bearer token for protected endpoints.",
    responses={401: {"description": "Invalid credentials"}},
)
def issue_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    demo_mode: DemoMode = Depends(get_demo_mode),
):
    if demo_mode.covers(form_data.username):
        identity = demo_mode.authenticate(form_data.username, form_data.password)
        if identity is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
        logger.warning("demo_token_issued", role=identity.role.value)
        token = create_access_token(identity.id, extra_claims={"demo": True, "email": identity.email})
        return TokenResponse(access_token=token, is_demo=True)

    user = authenticate_principal(db=db, email=form_data.username, password=form_data.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    try:
        identity_from_principal(user)
    except UnauthenticatedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials") from exc

    return TokenResponse(access_token=create_access_token(user.id))
