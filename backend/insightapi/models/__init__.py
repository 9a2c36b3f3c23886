from insightapi.models.revoked_token import RevokedRefreshToken
from insightapi.models.user import User

__all__ = [
    "RevokedRefreshToken",
    "User",
]
