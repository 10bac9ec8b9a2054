"""
OAuth2 ``state`` parameter handling.

Withings does not support PKCE for this flow, so CSRF protection relies on
a random state value sent with the authorization request and echoed back on
the redirect.
"""
import hmac
import secrets
import string

STATE_ALPHABET = string.ascii_letters + string.digits


def generate_state(length: int = 32) -> str:
    """
    Generate a random state value.

    Args:
        length: Number of characters (16-128). Default is 32.

    Returns:
        A random alphanumeric string.

    Raises:
        ValueError: If length is not between 16 and 128.
    """
    if not 16 <= length <= 128:
        raise ValueError("State length must be between 16 and 128 characters")

    return ''.join(secrets.choice(STATE_ALPHABET) for _ in range(length))


def states_match(expected: str, received: str) -> bool:
    """Compare two state values in constant time."""
    if not expected or not received:
        return False
    return hmac.compare_digest(expected.encode('utf-8'), received.encode('utf-8'))
