from datetime import datetime, timedelta, timezone
import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from jose import JWTError, jwt
import bcrypt
from sqlalchemy.orm import Session

from ..config import ACCESS_TOKEN_EXPIRE_MINUTES, BCRYPT_ROUNDS, COOKIE_SECURE, SECRET_KEY
from ..database import get_db
from ..models import User
from ..schemas.user import AuthResponse, TokenData, User as UserSchema, UserCreate

logger = logging.getLogger(__name__)

router = APIRouter()

ALGORITHM = "HS256"
TOKEN_COOKIE = "token"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    password_bytes = plain_password.encode('utf-8')[:72]
    hashed_bytes = hashed_password.encode('utf-8') if isinstance(hashed_password, str) else hashed_password
    return bcrypt.checkpw(password_bytes, hashed_bytes)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt directly."""
    password_bytes = password.encode('utf-8')[:72]  # Truncate to 72 bytes (bcrypt limit)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == email).first()
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def _get_token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip()
    return request.cookies.get(TOKEN_COOKIE)


def _decode_token(token: str) -> Optional[TokenData]:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        logger.debug("Rejected token: %s", exc)
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    exp = payload.get("exp")
    expires_at = datetime.fromtimestamp(exp, tz=timezone.utc) if exp is not None else None
    return TokenData(user_id=user_id, expires_at=expires_at)


def _resolve_token(request: Request, db: Session) -> Optional[Tuple[User, str, TokenData]]:
    """Decode the request's token once; return the user, the token and its claims."""
    token = _get_token_from_request(request)
    if not token:
        return None
    token_data = _decode_token(token)
    if not token_data or not token_data.user_id:
        return None
    user = db.get(User, token_data.user_id)
    if user is None:
        return None
    return user, token, token_data


def resolve_session(request: Request, db: Session) -> Optional[User]:
    """Resolve the request's credentials to a user, or ``None``."""
    resolved = _resolve_token(request, db)
    return resolved[0] if resolved else None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    """Get current user from JWT token."""
    token = _get_token_from_request(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = resolve_session(request, db)
    if user is None:
        logger.warning("Could not resolve session for %s %s", request.method, request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def _build_user_payload(user: User) -> dict:
    return UserSchema.model_validate(user).model_dump(mode="json", by_alias=True)


def _session_payload(token: str, user: User, expires_at: datetime) -> dict:
    return {
        "id": token,
        "expiresAt": expires_at.isoformat(),
        "userId": str(user.id),
    }


def _issue_token(response: Response, user: User) -> str:
    access_token = create_access_token(data={"sub": user.id})
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=access_token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return access_token


def _register(db: Session, email: str, password: str, name: Optional[str]) -> User:
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    db_user = User(
        email=email,
        name=name or email.split("@", 1)[0],
        hashed_password=get_password_hash(password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info("Registered user %s", db_user.id)
    return db_user


def _login(db: Session, email: str, password: str) -> User:
    user = authenticate_user(db, email, password)
    if not user:
        logger.info("Failed sign-in for %s", email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )
    return user


@router.post("/signup", response_model=AuthResponse)
def signup(
    user: UserCreate,
    response: Response,
    db: Session = Depends(get_db),
):
    """Create a new user account."""
    db_user = _register(db, user.email, user.password, user.name)
    access_token = _issue_token(response, db_user)
    return {"access_token": access_token, "token_type": "bearer", "user": db_user}


@router.post("/signin", response_model=AuthResponse)
def signin(
    user: UserCreate,
    response: Response,
    db: Session = Depends(get_db),
):
    """Sign in and get JWT token."""
    db_user = _login(db, user.email, user.password)
    access_token = _issue_token(response, db_user)
    return {"access_token": access_token, "token_type": "bearer", "user": db_user}


@router.post("/signout")
@router.post("/sign-out")
async def signout(response: Response):
    """Sign out and clear session cookie."""
    response.delete_cookie(key=TOKEN_COOKIE)
    return {"success": True}


@router.get("/session")
def get_session(request: Request, db: Session = Depends(get_db)):
    """Get current session from JWT."""
    resolved = _resolve_token(request, db)
    if resolved is None:
        return {"session": None, "user": None}

    user, token, token_data = resolved
    return {
        "session": _session_payload(token, user, token_data.expires_at or _expiry()),
        "user": _build_user_payload(user),
    }


@router.get("/me", response_model=UserSchema)
def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user


# Better-auth compatible endpoints

def _expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)


@router.post("/sign-in/email")
def sign_in_email(user: UserCreate, response: Response, db: Session = Depends(get_db)):
    """Sign in with email and password (better-auth compatible)."""
    db_user = _login(db, user.email, user.password)
    access_token = _issue_token(response, db_user)
    return {
        "user": _build_user_payload(db_user),
        "session": _session_payload(access_token, db_user, _expiry()),
    }


@router.post("/sign-up/email")
def sign_up_email(user: UserCreate, response: Response, db: Session = Depends(get_db)):
    """Sign up with email and password (better-auth compatible)."""
    db_user = _register(db, user.email, user.password, user.name)
    access_token = _issue_token(response, db_user)
    return {
        "user": _build_user_payload(db_user),
        "session": _session_payload(access_token, db_user, _expiry()),
    }
