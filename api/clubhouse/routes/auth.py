"""Authentication routes: register, login, current caller."""

import logging
import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, status

from clubhouse.core.auth import create_user_token, hash_password, verify_password
from clubhouse.core.dependencies import Caller, get_current_user
from clubhouse.core.errors import ConditionFailedError
from clubhouse.core.store import KeyValueStore, Put, get_store
from clubhouse.models.events import USERS_SOURCE, EventType
from clubhouse.models.member import UserRole, email_claim_key, user_key
from clubhouse.schemas import AuthResponse, CallerOut, LoginRequest, RegisterRequest, UserSummary
from clubhouse.services.events import publish_after_commit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _one_year_after(moment: datetime) -> datetime:
    try:
        return moment.replace(year=moment.year + 1)
    except ValueError:  # 29 February
        return moment.replace(year=moment.year + 1, month=3, day=1)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, store: KeyValueStore = Depends(get_store)):
    user_id = str(uuid.uuid4())
    email = body.email.lower()
    now = datetime.now(UTC)
    pk, sk = user_key(user_id)

    user = {
        "pk": pk,
        "sk": sk,
        "user_id": user_id,
        "email": email,
        "first_name": body.first_name,
        "last_name": body.last_name,
        "phone": body.phone,
        "password_hash": hash_password(body.password),
        "membership_type": body.membership_type.value,
        "membership_expiry": _one_year_after(now).isoformat(),
        "skill_level": body.skill_level.value,
        "role": UserRole.MEMBER.value,
        "is_active": True,
        "created_at": now.isoformat(),
        "updated_at": now.isoformat(),
    }
    claim_pk, claim_sk = email_claim_key(email)

    # The email claim and the user commit together; an existing claim rejects both
    try:
        await store.transact_write(
            [
                Put({"pk": claim_pk, "sk": claim_sk, "user_id": user_id, "email": email}, if_absent=True),
                Put(user, if_absent=True),
            ]
        )
    except ConditionFailedError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from None

    logger.info("User %s registered", user_id)

    await publish_after_commit(
        USERS_SOURCE,
        EventType.USER_REGISTERED,
        {"user_id": user_id, "email": email, "first_name": body.first_name, "last_name": body.last_name},
    )

    return AuthResponse(access_token=create_user_token(user), user=UserSummary.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, store: KeyValueStore = Depends(get_store)):
    claim = await store.get(*email_claim_key(body.email))
    user = await store.get(*user_key(claim["user_id"])) if claim else None

    if not user or not verify_password(body.password, user["password_hash"]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    if not user.get("is_active"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")

    return AuthResponse(access_token=create_user_token(user), user=UserSummary.model_validate(user))


@router.get("/me", response_model=CallerOut)
async def me(caller: Caller = Depends(get_current_user)):
    return CallerOut(user_id=caller.user_id, email=caller.email, role=caller.role)
