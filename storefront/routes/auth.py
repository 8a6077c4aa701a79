"""Sign-in and sign-out routes for shopper sessions"""

from typing import Optional

from pydantic import BaseModel, Field
from fastapi import APIRouter, Depends

from cartsync.policies import MergePolicy

from ..core.config import settings
from ..core.session import SessionManager, ShopperSession
from .deps import get_session_manager
from .sessions import SessionResponse, get_shopper_session, run_cart_operation

router = APIRouter(prefix="/api/sessions", tags=["Auth"])


class LoginRequest(BaseModel):
    """Identity established by the authentication layer"""
    user_id: str = Field(min_length=1)
    merge_policy: Optional[MergePolicy] = None


@router.post("/{session_id}/login", response_model=SessionResponse)
async def login(
    request: LoginRequest,
    session: ShopperSession = Depends(get_shopper_session),
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Attach a signed-in user to the session.

    The guest cart is discarded, merged into or replaces the user's cart
    depending on `merge_policy` (default from settings).
    """
    merge_policy = request.merge_policy or settings.default_merge_policy
    await run_cart_operation(manager.login(session, request.user_id, merge_policy))
    return SessionResponse.from_session(session)


@router.post("/{session_id}/logout", response_model=SessionResponse)
async def logout(
    session: ShopperSession = Depends(get_shopper_session),
    manager: SessionManager = Depends(get_session_manager),
):
    """Return the session to the device's guest cart"""
    await run_cart_operation(manager.logout(session))
    return SessionResponse.from_session(session)
