from typing import Annotated, Callable, Sequence

from fastapi import Depends, HTTPException, Request, UploadFile, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from app.core import settings
from app.core.security import decode_access_token, InvalidTokenError
from app.db import get_session
from app.db.models import User, UserRole
from app.services import ManagementService, TenantContext


oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.api_v1_prefix}/auth/login", auto_error=False
)

DBSession = Annotated[Session, Depends(get_session)]


def _extract_token(request: Request, bearer: str | None) -> str:
    if bearer:
        return bearer
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", maxsplit=1)[1]
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED, detail="Token di accesso mancante"
    )


def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    session: DBSession,
) -> User:
    """Recupera l'utente autenticato a partire da un Bearer token JWT."""
    raw_token = _extract_token(request, token)
    try:
        payload = decode_access_token(raw_token)
    except InvalidTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token non valido o scaduto",
        ) from exc

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token privo di subject",
        )
    user = session.get(User, str(user_id))
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Utente non trovato o disabilitato",
        )
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_tenant(current_user: CurrentUser) -> TenantContext:
    """Contesto di agenzia esplicito per le operazioni di servizio."""
    return ManagementService.tenant_for(current_user)


Tenant = Annotated[TenantContext, Depends(get_tenant)]


def require_role(allowed_roles: Sequence[UserRole]) -> Callable:
    def _role_guard(current_user: CurrentUser) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permessi insufficienti",
            )
        return current_user

    return Depends(_role_guard)


async def read_document(file: UploadFile) -> bytes:
    """Contenuto del documento caricato: solo PDF o immagini, mai vuoto."""
    if file.content_type not in settings.allowed_document_types:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Formato documento non supportato (PDF o immagine)",
        )
    document = await file.read()
    if not document:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Documento vuoto"
        )
    return document


__all__ = [
    "CurrentUser",
    "DBSession",
    "Tenant",
    "get_current_user",
    "get_tenant",
    "read_document",
    "require_role",
    "UserRole",
]
