import re
import secrets

TICKET_PREFIX = "TKT-"
TICKET_PATTERN = re.compile(r"^TKT-[0-9A-F]{8}$")


def generate_ticket_number() -> str:
    """Human-readable ticket id: TKT- followed by 4 random bytes as uppercase hex."""
    return f"{TICKET_PREFIX}{secrets.token_hex(4).upper()}"
