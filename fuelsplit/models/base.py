import itertools
import secrets
import string
import time
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

_ID_ALPHABET = string.digits + string.ascii_lowercase
_SEQUENCE = itertools.count()


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def _base36(value: int, width: int) -> str:
    chars = []
    for _ in range(width):
        value, digit = divmod(value, 36)
        chars.append(_ID_ALPHABET[digit])
    return "".join(reversed(chars))


def new_entry_id(timestamp_ms: Optional[int] = None) -> str:
    """
    Entry id: `<epoch ms>-<4 base36 sequence chars><2 random base36 chars>`.

    Ids created by this process sort in creation order, also within the same
    millisecond.
    """
    if timestamp_ms is None:
        timestamp_ms = now_ms()
    sequence = _base36(next(_SEQUENCE) % 36 ** 4, 4)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(2))
    return f"{timestamp_ms}-{sequence}{suffix}"


class CamelModel(BaseModel):
    """Immutable model serialised with camelCase field names."""
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        from_attributes=True
    )
