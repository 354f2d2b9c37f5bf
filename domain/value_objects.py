"""Domain Value Objects"""
from datetime import date
from math import ceil
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from domain import date_rules


class DateRange(BaseModel):
    """Value Object for a half-open stay interval [check_in, check_out)"""
    check_in: date
    check_out: date

    @field_validator('check_in', 'check_out', mode='before')
    @classmethod
    def normalize_to_calendar_date(cls, v: Any, info) -> date:
        return date_rules.to_calendar_date(v, info.field_name)

    @model_validator(mode='after')
    def check_out_after_check_in(self) -> "DateRange":
        if self.check_out <= self.check_in:
            raise ValueError('Check-out must be after check-in')
        return self

    @classmethod
    def of(cls, check_in: date_rules.DateLike, check_out: date_rules.DateLike) -> "DateRange":
        """Build a range, raising InvalidDateRange rather than a pydantic error"""
        date_rules.is_valid(check_in, check_out)
        return cls(
            check_in=date_rules.to_calendar_date(check_in),
            check_out=date_rules.to_calendar_date(check_out),
        )

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def contains(self, day: date) -> bool:
        """True if a guest sleeps in the room on the night of ``day``"""
        return self.check_in <= day < self.check_out

    def overlaps(self, other: "DateRange") -> bool:
        return date_rules.overlaps(self, other)

    class Config:
        frozen = True


class Pagination(BaseModel):
    """Page request, clamped to sane bounds"""
    page: int = 1
    limit: int = 10

    @classmethod
    def clamp(cls, page: int, limit: int, max_limit: int) -> "Pagination":
        return cls(page=max(page, 1), limit=min(max(limit, 1), max_limit))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    class Config:
        frozen = True


class PageMeta(BaseModel):
    """Pagination metadata returned with list results"""
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def build(cls, pagination: Pagination, total: int) -> "PageMeta":
        total_pages = ceil(total / pagination.limit) if total else 0
        return cls(
            page=pagination.page,
            limit=pagination.limit,
            total=total,
            total_pages=total_pages,
            has_next_page=pagination.page < total_pages,
            has_previous_page=pagination.page > 1,
        )
