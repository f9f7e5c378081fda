import secrets
import uuid


def gen_id(prefix: str) -> str:
    # row ids read as "<prefix>_<hex>", e.g. lst_..., ctr_..., shl_...
    return f"{prefix}_{uuid.uuid4().hex}"


def gen_token(nbytes: int) -> str:
    """Unguessable hex token; ``nbytes`` random bytes give ``2 * nbytes`` characters."""
    return secrets.token_hex(nbytes)
