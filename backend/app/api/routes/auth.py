from fastapi import APIRouter, Body, HTTPException, Request, status

from app.api.deps import CurrentUser, DBSession
from app.core import settings
from app.core.security import SlidingWindowRateLimiter, create_access_token
from app.schemas import LoginRequest, TokenResponse, UserRead
from app.services import ManagementService

router = APIRouter()
login_rate_limiter = SlidingWindowRateLimiter(
    settings.login_rate_limit_attempts, settings.login_rate_limit_window_seconds
)


@router.post("/login", response_model=TokenResponse)
def login(
    request: Request,
    session: DBSession,
    credentials: LoginRequest = Body(...),
):
    client_ip = request.client.host if request.client else "anonymous"
    login_rate_limiter.hit(client_ip)

    user = ManagementService.login(
        session,
        credentials.username,
        credentials.password,
        ip_address=client_ip,
        endpoint=str(request.url),
    )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenziali non valide",
        )

    access_token = create_access_token(
        subject=user.id,
        username=user.username,
        role=user.role.value,
        agency_id=user.agency_id,
    )
    return TokenResponse(access_token=access_token, user=UserRead.model_validate(user))


@router.get("/me", response_model=UserRead)
def read_me(current_user: CurrentUser):
    return current_user
