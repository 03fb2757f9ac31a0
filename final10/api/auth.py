"""
Authentication endpoints: signup, login and the current profile.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from final10.api.deps import get_client_ip, get_current_user, get_user_agent, raise_service_error
from final10.db import models, schemas
from final10.db.database import get_db
from final10.services.account_service import AccountService
from final10.services.errors import AccountError

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: schemas.SignupRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    try:
        return AccountService(db).signup(payload, ip=get_client_ip(request), ua=get_user_agent(request))
    except AccountError as exc:
        raise_service_error(exc)


@router.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    try:
        return AccountService(db).login(payload.email.strip().lower(), payload.password)
    except AccountError as exc:
        raise_service_error(exc)


@router.get("/me", response_model=schemas.UserPublic)
def me(user: models.User = Depends(get_current_user)):
    return user
