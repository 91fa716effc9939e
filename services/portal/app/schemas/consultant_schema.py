from typing import List, Optional

from pydantic import BaseModel, Field


class ConsultantProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    bio: Optional[str] = None
    expertise: Optional[List[str]] = None


class ConsultantAdminUpdate(ConsultantProfileUpdate):
    is_active: Optional[bool] = None
