from __future__ import annotations

from pydantic import BaseModel, Field


class APIMessage(BaseModel):
    message: str = Field(..., description="Human-readable message.")


class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable error message.")
    code: str = Field(..., description="Stable machine-readable error code.")


DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


class Pagination(BaseModel):
    page: int = Field(1, ge=1, description="1-based page number.")
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Maximum number of records per page.")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size
