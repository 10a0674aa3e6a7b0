from fastapi import APIRouter, Depends, Form, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from ..auth import AuthGate, get_current_user, get_store
from ..schemas import User
from ..store import KeyValueStore

router = APIRouter()

@router.post("/login", response_model=User)
def login(
    username: str = Form(...),
    password: str = Form(...),
    store: KeyValueStore = Depends(get_store),
):
    try:
        user = AuthGate(store).login(username, password)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to access storage. Try again.")

    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid username or password.")
    return user

@router.get("/logout")
def logout(store: KeyValueStore = Depends(get_store)):
    AuthGate(store).logout()
    return {"logged_out": True}

@router.get("/me", response_model=User)
def me(user: User = Depends(get_current_user)):
    return user
