from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    company_name: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    company_name: Optional[str] = None
    coins: int = 0
    is_admin: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CoinsMode(str, Enum):
    ADD = "add"
    SET = "set"


class CoinsUpdate(BaseModel):
    amount: int
    mode: CoinsMode = CoinsMode.ADD


class AdminUpdate(BaseModel):
    is_admin: bool = True


class TopUser(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    coins: int = 0


class ProfileStats(BaseModel):
    total_users: int
    new_users_today: int
    top_users: List[TopUser] = Field(default_factory=list)
