"""Actor resolution for the HTTP layer.

Authentication itself (login, token issuance) belongs to the identity
service; this package only verifies bearer tokens and exposes the caller as
an explicit ``Actor``.
"""

from .models import Actor, User
from .permissions import UserRole


__all__ = ["Actor", "User", "UserRole"]
