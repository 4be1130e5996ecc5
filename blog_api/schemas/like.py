from pydantic import BaseModel, Field

class LikeToggleResponse(BaseModel):
    """Result of a like toggle"""
    message: str = Field(..., description="What the toggle did")
    likes_count: int = Field(..., description="Size of the like set after the toggle")
    is_liked: bool = Field(..., description="Whether the caller now likes the target")
