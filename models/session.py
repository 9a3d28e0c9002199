# models/session.py

from typing import List, Literal, Optional, Union

from pydantic import BaseModel

from models.user import UserRead


# ===============================================================
# TAGGED SESSION
# ===============================================================

class AuthenticatedSession(BaseModel):
    authenticated: Literal[True] = True
    user: UserRead
    permissions: List[str] = []

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def administrator_id(self) -> Optional[str]:
        return self.user.administrator_id


class UnauthenticatedSession(BaseModel):
    """
    No usable session. `loading` is only a rendering hint for clients that
    resolve sessions asynchronously; access is denied either way.
    """

    authenticated: Literal[False] = False
    loading: bool = False


Session = Union[AuthenticatedSession, UnauthenticatedSession]

