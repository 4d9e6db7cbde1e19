from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from schemas.chat import ChatRequest, ChatResponse
from generation import CHAT_PROMPT, ReplyGenerationError
from logging_config import get_logger

logger = get_logger(__name__)

chat_router = APIRouter(prefix="/chat", tags=["chat"])


@chat_router.post("", response_model=ChatResponse)
async def chat(body: ChatRequest, request: Request):
    """Supportive chatbot reply for a single user message."""
    if not body.user_input:
        raise HTTPException(status_code=400, detail="userInput is required")

    generator = request.app.state.reply_generator
    try:
        # Generators make blocking HTTP calls
        reply = await run_in_threadpool(generator.generate, CHAT_PROMPT.format(user_input=body.user_input))
    except ReplyGenerationError as e:
        logger.error(f"Error generating chat reply: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate reply")

    logger.info(f"Chat reply generated ({len(reply)} chars)")
    return ChatResponse(reply=reply)
