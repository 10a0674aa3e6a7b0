"""
Demo-grade login: two fixed accounts, plain-text password comparison, and the
signed-in user persisted under the `current-user` key of the blob store.
No hashing, no expiry, no lockout.
"""

from typing import Dict, Optional, Tuple

from fastapi import Depends, HTTPException
from pydantic import ValidationError

from .database import SessionLocal
from .exceptions import CorruptDataError
from .schemas import Role, User
from .store import CURRENT_USER_KEY, KeyValueStore, SqlStore

ACCOUNTS: Dict[Tuple[str, str], User] = {
    ("admin", "password"): User(id=1, username="admin", role=Role.ADMIN),
    ("user", "password"): User(id=2, username="user", role=Role.USER),
}


class AuthGate:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def login(self, username: str, password: str) -> Optional[User]:
        # unknown user and wrong password are indistinguishable to the caller
        account = ACCOUNTS.get((username, password))
        if account is None:
            return None
        user = account.model_copy()
        self.store.set(CURRENT_USER_KEY, user.model_dump(mode="json"))
        return user

    def logout(self) -> None:
        self.store.remove(CURRENT_USER_KEY)

    def current_user(self) -> Optional[User]:
        raw = self.store.get(CURRENT_USER_KEY)
        if raw is None:
            return None
        try:
            return User.model_validate(raw)
        except ValidationError as exc:
            raise CorruptDataError(CURRENT_USER_KEY, str(exc)) from exc


_default_store = SqlStore(SessionLocal)

def get_store() -> KeyValueStore:
    return _default_store

def get_current_user(store: KeyValueStore = Depends(get_store)) -> User:
    user = AuthGate(store).current_user()
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user

def require_role(*roles):
    def wrapper(user: User = Depends(get_current_user)):
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user
    return wrapper
