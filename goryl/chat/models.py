from pydantic import BaseModel, Field
from goryl.chat.constants import MESSAGE_MAX_LENGTH


class ChatRoomIn(BaseModel):
    user_id: str


class SendMessageIn(BaseModel):
    receiver_id: str
    text: str = Field("", max_length=MESSAGE_MAX_LENGTH)
