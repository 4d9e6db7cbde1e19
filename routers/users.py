import json
from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from redis import RedisError
from schemas.users import (
    CreateUserRequest, LoginRequest, UserResponse, AssessmentRequest, Assessment, UserProfileResponse
)
from passwords import hash_password, verify_password
from generation import ASSESSMENT_PROMPT, ReplyGenerationError
from logging_config import get_logger

logger = get_logger(__name__)

users_router = APIRouter(prefix="/users", tags=["users"])


def _store(request: Request):
    return request.app.state.user_store


def _find_user(request: Request, username: str):
    try:
        return _store(request).find_by_username(username)
    except RedisError as e:
        logger.error(f"Error fetching user {username}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch user")


@users_router.post("", status_code=201, response_model=UserResponse)
async def create_user(user: CreateUserRequest, request: Request):
    logger.info(f"Signup request for {user.username}")
    try:
        created = _store(request).insert({
            "username": user.username,
            "email": user.email,
            "password_hash": hash_password(user.password),
            "first_time_user": True,
            "created_at": datetime.now(timezone.utc).isoformat(),
        })
    except RedisError as e:
        logger.error(f"Error creating user {user.username}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create user")

    if not created:
        logger.warning(f"Signup failed: username {user.username} already exists")
        raise HTTPException(status_code=409, detail="Username already exists, please login")
    return UserResponse(username=user.username, first_time_user=True)


@users_router.post("/login", response_model=UserResponse)
async def login(credentials: LoginRequest, request: Request):
    existing = _find_user(request, credentials.username)
    if not existing:
        logger.info(f"Login failed: user {credentials.username} does not exist")
        raise HTTPException(status_code=400, detail="User does not exist")
    if not verify_password(credentials.password, existing.get("password_hash", "")):
        logger.info(f"Login failed: incorrect password for {credentials.username}")
        raise HTTPException(status_code=400, detail="Incorrect password")

    logger.info(f"User {credentials.username} logged in")
    return UserResponse(username=credentials.username, first_time_user=existing["first_time_user"])


@users_router.get("/{username}", response_model=UserProfileResponse)
async def get_user(username: str, request: Request):
    existing = _find_user(request, username)
    if not existing:
        raise HTTPException(status_code=404, detail="User not found")
    return UserProfileResponse(
        username=username,
        email=existing.get("email"),
        first_time_user=existing["first_time_user"],
        assessments=[Assessment.model_validate(a) for a in existing.get("assessments", [])],
    )


@users_router.post("/{username}/assessments", status_code=201, response_model=Assessment)
async def add_assessment(username: str, body: AssessmentRequest, request: Request):
    """Record questionnaire answers and a reply for them, then clear the first-time flag.

    When the caller sends no `aiReply`, one is generated from the answers.
    """
    if not body.answers:
        raise HTTPException(status_code=400, detail="No answers provided")
    if not _find_user(request, username):
        raise HTTPException(status_code=404, detail="User not found")

    ai_reply = body.ai_reply
    if ai_reply is None:
        prompt = ASSESSMENT_PROMPT.format(answers=json.dumps(body.answers, indent=2))
        try:
            ai_reply = await run_in_threadpool(request.app.state.reply_generator.generate, prompt)
        except ReplyGenerationError as e:
            logger.error(f"Error generating assessment reply for {username}: {e}")
            raise HTTPException(status_code=500, detail="Failed to generate reply")

    assessment = Assessment(
        date=datetime.now(timezone.utc).isoformat(),
        answers=body.answers,
        ai_reply=ai_reply,
    )
    store = _store(request)
    try:
        if not store.append_assessment(username, assessment.model_dump(by_alias=True)):
            raise HTTPException(status_code=404, detail="User not found")
        store.update_first_time_flag(username, False)
    except RedisError as e:
        logger.error(f"Error storing assessment for {username}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to store assessment")

    logger.info(f"Assessment stored for {username} ({len(body.answers)} answers)")
    return assessment
