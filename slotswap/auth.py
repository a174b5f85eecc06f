# auth.py

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from slotswap.config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from slotswap.data_models import User
from slotswap.errors import InvalidRequestError
from slotswap.models import users
from slotswap.store import RecordStore, Transaction

logger = logging.getLogger(__name__)

# Tokens come from an external issuer; there is no token endpoint here.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


# User registration model
class UserCreate(BaseModel):
    name: str
    email: str


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


async def get_user(store: RecordStore, user_id: str) -> Optional[User]:
    async def _get(tx: Transaction):
        return await tx.get("users", user_id)

    record = await store.transact(_get)
    return User(**record) if record else None


# Registers an identity in the users collection
async def create_user(store: RecordStore, user: UserCreate) -> User:
    async def _create(tx: Transaction):
        if await tx.find_one("users", users.c.email == user.email):
            raise InvalidRequestError("Email already registered.")
        return await tx.insert("users", {
            "name": user.name,
            "email": user.email,
            "created_at": datetime.now(timezone.utc),
        })

    return User(**await store.transact(_create))


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


# Resolves a bearer token to the id of an existing user
async def get_current_user_id(
    token: Optional[str] = Depends(oauth2_scheme),
    store: RecordStore = Depends(get_store),
) -> str:
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        logger.info("Rejected bearer token")
        raise credentials_exception

    if await get_user(store, user_id) is None:
        raise credentials_exception
    return user_id
