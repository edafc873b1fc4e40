# auth.py
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from app_logging import get_logger
from config import settings
from dependencies import get_user_store
from models import UserRole
import schemas
from stores import UserStore

router = APIRouter(tags=["Auth"])

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # stored value is not a recognised hash
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def token_for(user) -> str:
    return create_access_token({"sub": user.id, "role": user.role})


def decode_access_token(token: str) -> schemas.TokenData:
    """Verify signature and expiry and return the embedded identity.

    Raises ``JWTError`` for anything that is not a valid token of ours.
    """
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    user_id = payload.get("sub")
    if not user_id:
        raise JWTError("token has no subject")
    return schemas.TokenData(id=user_id, role=payload.get("role"))


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> schemas.TokenData:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. No token provided.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token")


def _auth_response(message: str, user) -> dict:
    return {
        "message": message,
        "token": token_for(user),
        "user": schemas.UserOut.model_validate(user),
    }


@router.post(
    "/register",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(payload: schemas.UserCreate, users: UserStore = Depends(get_user_store)):
    """Register a new user and return a session token."""
    role = payload.role.value if payload.role else UserRole.TEACHER.value
    user = users.create(
        full_name=payload.full_name,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=role,
    )
    logger.info("registered user %s with role %s", user.id, user.role)
    return _auth_response("User registered successfully", user)


@router.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.UserLogin, users: UserStore = Depends(get_user_store)):
    user = users.get_by_email(payload.email)
    # same answer for unknown email and wrong password
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials"
        )
    return _auth_response("Login successful", user)


@router.post("/logout")
def logout(current_user: schemas.TokenData = Depends(get_current_user)):
    # tokens stay valid until they expire; nothing is stored server side
    return {"message": "Logged out successfully"}


@router.get("/api/auth/me", response_model=schemas.UserOut)
def me(
    current_user: schemas.TokenData = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    user = users.get(current_user.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
