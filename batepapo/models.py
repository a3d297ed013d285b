# Pydantic models for the documents kept in the store and the bodies the API accepts.
import time
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

BROADCAST = 'Todos'

JOIN_TEXT = 'entra na sala...'
LEAVE_TEXT = 'sai da sala...'

# set on a participant once its departure notice has been written
DEPARTED_AT = 'departedAt'


def now_millis() -> int:
    return int(time.time() * 1000)


def format_time(millis: int) -> str:
    """HH:MM:SS in local time, the way messages are stamped."""
    return datetime.fromtimestamp(millis / 1000).strftime('%H:%M:%S')


class MessageType(str, Enum):
    MESSAGE = 'message'
    PRIVATE_MESSAGE = 'private_message'
    STATUS = 'status'


class ParticipantIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: str = Field(..., min_length=1)


class Participant(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    last_status: int = Field(..., alias='lastStatus')

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class MessageIn(BaseModel):
    to: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    # 'status' is reserved for notices written by the server itself
    type: Literal['message', 'private_message']


class Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    frm: str = Field(..., alias='from')
    to: str
    text: str
    type: MessageType
    time: str

    @classmethod
    def status(cls, name: str, text: str, at: int) -> 'Message':
        return cls(frm=name, to=BROADCAST, text=text, type=MessageType.STATUS, time=format_time(at))

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, mode='json')
