"""Record id generation.

Ids combine a millisecond timestamp with a random suffix. They are unique
enough for one engine process; collisions are not guarded against.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

from ._internal import utcnow

if TYPE_CHECKING:
    from ._internal import Clock

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _random_suffix(length: int = 9) -> str:
    number = uuid4().int
    chars: list[str] = []
    for _ in range(length):
        number, index = divmod(number, 36)
        chars.append(_BASE36[index])
    return "".join(chars)


def generate_record_id(*, clock: Clock = utcnow) -> str:
    millis = int(clock().timestamp() * 1000)
    return f"rec_{millis}_{_random_suffix()}"
