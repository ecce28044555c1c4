from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from permscope.db.session import get_db
from permscope.errors import UnknownUser
from permscope.schemas.security import ContextOut, LoginIn, SessionOut
from permscope.security.auth import build_context
from permscope.security.context import AuthorizationContext
from permscope.security.dependencies import get_authz_context, get_session_cache, get_session_token
from permscope.security.sessions import SessionCache
from permscope.store.grants import GrantStore

router = APIRouter(tags=["sessions"])


@router.post("/sessions", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
def login(
    body: LoginIn,
    db: Session = Depends(get_db),
    sessions: SessionCache = Depends(get_session_cache),
) -> SessionOut:
    # Demo login: credentials are checked upstream; this only builds and caches the context.
    try:
        ctx = build_context(GrantStore(db), body.user_id)
    except UnknownUser as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or inactive user") from exc
    token = sessions.open(ctx)
    return SessionOut(token=token, user_id=ctx.user_id, role=str(ctx.to_dict()["role"]))


@router.delete("/sessions", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    token: str = Depends(get_session_token),
    sessions: SessionCache = Depends(get_session_cache),
) -> None:
    sessions.close(token)


@router.get("/me", response_model=ContextOut)
def me(ctx: AuthorizationContext = Depends(get_authz_context)) -> dict[str, object]:
    return ctx.to_dict()
