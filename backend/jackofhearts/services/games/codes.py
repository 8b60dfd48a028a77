import random
import string

CODE_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_CODE_LENGTH = 6


def new_code(length=DEFAULT_CODE_LENGTH, rng=None):
    """Draw a short, shareable code. Uniqueness is checked by the store."""
    rng = rng or random
    return ''.join(rng.choices(CODE_ALPHABET, k=length))
