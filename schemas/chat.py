from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_input: Optional[str] = Field(None, alias="userInput")

class ChatResponse(BaseModel):
    reply: str
