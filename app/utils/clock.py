import secrets
import string
from datetime import datetime

ALPHANUMERIC_UPPER = string.ascii_uppercase + string.digits


class Clock:
    """Source of "now" for every timestamp the engine writes (naive UTC)."""

    def now(self) -> datetime:
        return datetime.utcnow()


class TokenGenerator:
    def random_string(self, length: int, alphabet: str = ALPHANUMERIC_UPPER) -> str:
        return ''.join(secrets.choice(alphabet) for i in range(length))


system_clock = Clock()
token_generator = TokenGenerator()
