"""Explicit caller context: who is asking and whether they may see cost data or write."""
import hmac
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class Session:
    email: Optional[str] = None
    privileged: bool = False


ANONYMOUS = Session()


def session_from_credentials(
    token: Optional[str],
    email: Optional[str],
    admin_token: str,
    admin_emails: Sequence[str],
) -> Session:
    """Privileged when the bearer token matches and, if an allow-list is set, the email is on it."""
    email = (email or "").strip().lower() or None
    if not admin_token or not token:
        return Session(email=email)
    if not hmac.compare_digest(token.encode(), admin_token.encode()):
        return Session(email=email)
    if admin_emails and email not in admin_emails:
        return Session(email=email)
    return Session(email=email, privileged=True)
