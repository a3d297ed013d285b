"""
Error taxonomy for the chat backend.

Every error raised on purpose derives from ChatError and carries the HTTP
status the API answers with, so a single exception handler can render them.

    ChatError
    ├── ValidationError (422)
    │   └── InvalidLimit
    ├── UnknownSender (422)
    ├── MissingIdentity (400)
    ├── NotFound (404)
    ├── Conflict (409)
    └── StoreError (500)
        └── DuplicateEntry
"""
from typing import List, Optional


class ChatError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {'error': self.message}


class ValidationError(ChatError):
    """Malformed or missing input. Lists every offending field."""
    status_code = 422

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = list(fields or [])

    @classmethod
    def from_errors(cls, errors) -> 'ValidationError':
        """Build from pydantic-style error dicts, one field per distinct `loc`."""
        fields = []
        for err in errors:
            name = '.'.join(str(part) for part in err['loc']) or 'body'
            if name not in fields:
                fields.append(name)
        return cls(f"invalid {', '.join(fields)}", fields=fields)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.fields:
            data['fields'] = self.fields
        return data


class InvalidLimit(ValidationError):
    def __init__(self, raw):
        super().__init__(f'invalid limit: {raw!r}', fields=['limit'])
        self.raw = raw


class UnknownSender(ChatError):
    status_code = 422

    def __init__(self, name: Optional[str]):
        super().__init__(f'unknown sender: {name!r}')
        self.name = name


class MissingIdentity(ChatError):
    status_code = 400

    def __init__(self, message: str = "missing 'user' header"):
        super().__init__(message)


class NotFound(ChatError):
    status_code = 404


class Conflict(ChatError):
    status_code = 409


class StoreError(ChatError):
    """Any failure of the underlying document store."""
    status_code = 500


class DuplicateEntry(StoreError):
    """A write violated a uniqueness constraint enforced by the store."""
