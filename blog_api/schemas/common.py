from pydantic import BaseModel, Field

class PageMeta(BaseModel):
    """Pagination fields shared by list responses"""
    count: int = Field(..., description="Items on this page")
    total: int = Field(..., description="Items across all pages")
    total_pages: int = Field(..., description="Number of pages")
    current_page: int = Field(..., description="Page number, starting at 1")

class MessageResponse(BaseModel):
    message: str
