from typing import Optional

from schemas.base import CamelModel


class UserOut(CamelModel):
    id: str
    email: str
    role: str
    store_id: Optional[str] = None
