"""
Participant and message operations behind the HTTP routes.

Functions take the Store explicitly and raise ChatError subclasses for every
expected failure; store failures surface as StoreError untouched.
"""
import logging
from typing import Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .exceptions import Conflict, DuplicateEntry, MissingIdentity, UnknownSender, ValidationError
from .models import JOIN_TEXT, Message, MessageIn, Participant, ParticipantIn, format_time, now_millis
from .store import MESSAGES, PARTICIPANTS, Store
from .visibility import limited_view

logger = logging.getLogger(__name__)


def _validate(model, payload):
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError.from_errors(e.errors()) from None


async def register_participant(store: Store, payload, clock: Callable[[], int] = now_millis) -> Participant:
    data = _validate(ParticipantIn, payload)
    if await store.find_one(PARTICIPANTS, {'name': data.name}):
        logger.info('name %s already taken', data.name)
        raise Conflict('Esse nome de usuário já existe!')

    now = clock()
    participant = Participant(name=data.name, last_status=now)
    try:
        await store.insert_one(PARTICIPANTS, participant.to_document())
    except DuplicateEntry:
        # lost a race with a concurrent registration of the same name
        logger.info('name %s taken concurrently', data.name)
        raise Conflict('Esse nome de usuário já existe!') from None
    await store.insert_one(MESSAGES, Message.status(data.name, JOIN_TEXT, now).to_document())
    logger.info('%s joined', data.name)
    return participant


async def list_participants(store: Store) -> List[dict]:
    return await store.find(PARTICIPANTS)


async def submit_message(store: Store, sender: Optional[str], payload,
                         clock: Callable[[], int] = now_millis) -> Message:
    data = _validate(MessageIn, payload)
    if not sender or not await store.find_one(PARTICIPANTS, {'name': sender}):
        raise UnknownSender(sender)

    message = Message(frm=sender, to=data.to, text=data.text, type=data.type, time=format_time(clock()))
    await store.insert_one(MESSAGES, message.to_document())
    logger.debug('%s -> %s (%s)', sender, data.to, data.type)
    return message


async def read_messages(store: Store, user: Optional[str], limit=None) -> List[dict]:
    if not user:
        raise MissingIdentity()
    return await limited_view(store, user, limit)
