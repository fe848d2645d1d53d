from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ItemIn(BaseModel):
    title: str
    description: str = ""
    image: Optional[str] = None
    large_image: Optional[str] = None
    price: int = Field(..., ge=0)


class ItemUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    large_image: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)


class ItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    title: str
    description: str
    image: Optional[str] = None
    large_image: Optional[str] = None
    price: int
    user_id: Optional[int] = None
