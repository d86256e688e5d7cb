from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional

from app.core.constants import RoleEnum

class UserBase(BaseModel):
    """Base user schema with common fields."""
    full_name: str
    email: EmailStr
    role: RoleEnum = RoleEnum.STUDENT

class UserCreate(UserBase):
    is_active: bool = True

class User(UserBase):
    """Main user schema for reading user data."""
    id: int
    is_active: bool
    model_config = ConfigDict(from_attributes=True)

class UserContext(BaseModel):
    """The authenticated user a request acts on behalf of."""
    user: User
    role: RoleEnum
    model_config = ConfigDict(from_attributes=True)

class CourseCreate(BaseModel):
    title: str
    description: Optional[str] = None
