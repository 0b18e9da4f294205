"""POST /api/v1/users: dashboard user sign-up."""

import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException

from api.database import get_db
from api.models import SignupIn, UserOut
from utils import store
from utils.config import KnownValues
from utils.signup import normalize_phone, validate_signup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "",
    response_model=UserOut,
    status_code=201,
    summary="Register a dashboard user",
    responses={400: {"description": "Invalid sign-up details"},
               409: {"description": "Email already registered"}},
)
def register(body: SignupIn, conn: sqlite3.Connection = Depends(get_db)) -> dict:
    problem = validate_signup(body.first_name, body.last_name, body.email,
                              body.phone, body.country, body.gender)
    if problem:
        raise HTTPException(status_code=400, detail=problem)
    country = KnownValues.country_name(body.country)
    try:
        user = store.create_user(
            conn, body.email, body.first_name.strip(), body.last_name.strip(),
            phone=normalize_phone(body.phone, country),
            country=country,
            occupation=(body.occupation or "").strip() or None,
            gender=body.gender.lower() if body.gender else None,
        )
    except sqlite3.IntegrityError:
        raise HTTPException(status_code=409, detail="Email already in use")
    logger.info("user registered id=%s country=%s", user["id"], country)
    return user
