from __future__ import annotations

import logging
from hashlib import sha256
from typing import Any, Awaitable, Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core import settings
from app.core.security import InvalidTokenError, decode_access_token
from app.db.models import AuditLog
from app.db.session import engine

logger = logging.getLogger(__name__)

API_CALL_ACTION = "API_CALL"


def _token_claims(request: Request) -> dict[str, Any]:
    """
    Prova a recuperare utente e agenzia dal token JWT nell'header
    Authorization Bearer. Restituisce un dict vuoto se il token manca
    o non è valido.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.lower().startswith("bearer "):
        return {}
    token = auth_header.split(" ", maxsplit=1)[1].strip()
    try:
        return decode_access_token(token)
    except InvalidTokenError:
        # Token non valido: ignorato ai fini dell'audit
        return {}


def _payload_too_large() -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={"detail": f"Payload troppo grande (>{settings.max_upload_size_mb}MB)"},
    )


async def audit_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable],
):
    """
    Middleware globale che:
    - limita la dimensione del payload (upload documenti)
    - registra un audit API_CALL per ogni chiamata API v1
    """
    max_bytes = settings.max_upload_size_bytes

    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > max_bytes:
        return _payload_too_large()

    # Body letto una sola volta
    body = await request.body()
    if len(body) > max_bytes:
        return _payload_too_large()
    request._body = body  # type: ignore[attr-defined]

    claims = _token_claims(request)
    outcome = "success"

    try:
        response = await call_next(request)
        if response.status_code >= 400:
            outcome = "failure"
        return response
    except Exception:
        outcome = "failure"
        raise
    finally:
        if request.url.path.startswith(settings.api_v1_prefix):
            try:
                with Session(engine) as session:
                    session.add(
                        AuditLog(
                            user_id=claims.get("sub"),
                            username=claims.get("username"),
                            agency_id=claims.get("agency_id"),
                            action=API_CALL_ACTION,
                            details=f"{request.method} {request.url.path}",
                            method=request.method,
                            endpoint=request.url.path,
                            ip_address=request.client.host if request.client else None,
                            payload_hash=sha256(body).hexdigest() if body else None,
                            outcome=outcome,
                        )
                    )
                    session.commit()
            except SQLAlchemyError as exc:  # pragma: no cover - audit best effort
                logger.warning("Audit log fallito: %s", exc)


__all__ = ["API_CALL_ACTION", "audit_middleware"]
