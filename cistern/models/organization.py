"""
Organization Model
Pydantic model for one entry of GET /me/collaborations.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Organization(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str
    vcs_type: str
    slug: str
