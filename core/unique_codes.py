# core/unique_codes.py

import secrets
from typing import Callable

from core.logging_config import logger


class CodeGenerationError(Exception):
    """No unused code was found within the allowed number of attempts."""


def random_code(length: int, alphabet: str) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_unique(
    scope_key: str,
    attempts: int,
    generator: Callable[[], str],
    exists_check: Callable[[str, str], bool],
) -> str:
    """
    Draw candidates from `generator` until `exists_check(scope_key, candidate)`
    is False. Gives up with CodeGenerationError after `attempts` draws.

    Used for building codes (scope = organization id) and invite codes
    (scope = global).
    """
    for attempt in range(1, attempts + 1):
        candidate = generator()
        if not exists_check(scope_key, candidate):
            return candidate
        logger.info(f"Code collision in scope {scope_key!r} (attempt {attempt}/{attempts})")

    raise CodeGenerationError(f"Could not generate a unique code for {scope_key!r} after {attempts} attempts")
