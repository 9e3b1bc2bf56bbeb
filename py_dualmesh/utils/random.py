"""
Process-wide random source.

Samplers created without an explicit seed draw from this shared Alea
generator so that a whole run can be made reproducible with one call to
``set_random_seed``.
"""

from typing import Optional

from ..config import settings
from ..core.alea_prng import AleaPRNG

_prng: Optional[AleaPRNG] = None


def set_random_seed(seed: str) -> None:
    """Reset the shared generator to ``seed``."""
    global _prng
    _prng = AleaPRNG(seed)


def get_prng() -> AleaPRNG:
    """Shared generator, seeded with ``settings.default_seed`` on first use."""
    global _prng
    if _prng is None:
        _prng = AleaPRNG(settings.default_seed)
    return _prng
