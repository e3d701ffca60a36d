from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..core.errors import InvalidInput
from ..core.security import issue_token_pair, refresh_access_token
from ..crud.hardware import get_holdings
from ..crud.users import authenticate, create_user
from ..db.session import get_db
from ..deps.auth import AuthContext, require_user
from ..deps.session import end_session, start_session
from ..schemas.auth import Credentials, MeResponse, RefreshRequest, TokenResponse, UserOut

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _invalid_credentials() -> None:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")


@router.post("/signup", response_model=UserOut, status_code=201, summary="Create an account and log in")
def signup(payload: Credentials, request: Request, db: Session = Depends(get_db)):
    try:
        user = create_user(db, payload.username, payload.password)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from exc
    start_session(request, user.username)
    return user


@router.post("/login", response_model=UserOut, summary="Start a browser session")
def login(payload: Credentials, request: Request, db: Session = Depends(get_db)):
    user = authenticate(db, payload.username, payload.password)
    if user is None:
        _invalid_credentials()
    start_session(request, user.username)
    return user


@router.post("/logout", summary="End the browser session")
def logout(request: Request):
    end_session(request)
    return {"ok": True}


@router.get("/me", response_model=MeResponse)
def me(auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    return MeResponse(username=auth.username, scheme=auth.scheme, holdings=get_holdings(db, auth.username))


@router.post("/token", response_model=TokenResponse, summary="Exchange credentials for JWTs")
def exchange_token(payload: Credentials, db: Session = Depends(get_db)):
    user = authenticate(db, payload.username, payload.password)
    if user is None:
        _invalid_credentials()
    pair = issue_token_pair(user.username)
    return TokenResponse(**pair.model_dump())


@router.post("/refresh", response_model=TokenResponse, summary="Refresh access token")
def refresh_token(payload: RefreshRequest):
    try:
        pair = refresh_access_token(payload.refresh_token)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return TokenResponse(**pair.model_dump())
