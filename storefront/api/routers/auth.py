# storefront/api/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_storefront
from storefront.container import Storefront
from storefront.domain.errors import RemoteFailure, Unauthenticated
from storefront.domain.schemas import CredentialsIn, Identity

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/sign-in", response_model=Identity)
def sign_in(payload: CredentialsIn, storefront: Storefront = Depends(get_storefront)):
    try:
        return storefront.auth.sign_in_with_password(payload.email, payload.password)
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
    except RemoteFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/sign-up")
def sign_up(payload: CredentialsIn, storefront: Storefront = Depends(get_storefront)):
    try:
        user = storefront.auth.sign_up(payload.email, payload.password)
    except Unauthenticated as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RemoteFailure as e:
        raise HTTPException(status_code=502, detail=str(e))

    if user is None:
        return {"user": None, "confirmation_required": True}
    return {"user": user.model_dump(), "confirmation_required": False}


@router.post("/sign-out")
def sign_out(storefront: Storefront = Depends(get_storefront)):
    storefront.auth.sign_out()
    return {"signed_out": True}


@router.get("/me", response_model=Identity)
def me(storefront: Storefront = Depends(get_storefront)):
    user = storefront.identity.current_user()
    if user is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return user
