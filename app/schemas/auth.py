"""Authentication schemas for bearer-token callers."""

from pydantic import BaseModel, Field, validator
from typing import List, Optional


class TokenData(BaseModel):
    """JWT token payload data."""
    sub: Optional[str] = None
    business_id: Optional[str] = None
    branch_scope: List[str] = Field(default_factory=list)


class Principal(BaseModel):
    """Authenticated caller acting within one business.

    An empty ``branch_scope`` means the caller may see every branch.
    """
    user_id: str
    business_id: str
    branch_scope: List[str] = Field(default_factory=list)

    @validator("branch_scope", pre=True)
    def drop_blank_branches(cls, v):
        if v is None:
            return []
        return [branch for branch in v if branch]

    @property
    def is_branch_restricted(self) -> bool:
        return bool(self.branch_scope)
