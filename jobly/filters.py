"""
Search criteria for listing jobs and the WHERE clause built from them.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, NamedTuple, Optional

from .errors import ValidationError
from .schema import validate_search

_ATTR_NAMES = {
    "minSalary": "min_salary",
    "hasEquity": "has_equity",
    "title": "title",
}


@dataclass(frozen=True)
class JobFilters:
    """
    Optional criteria for JobRepository.find_all.

    None means "not specified". has_equity=False is accepted but narrows
    nothing, same as leaving it out.
    """

    min_salary: Optional[int] = None
    has_equity: Optional[bool] = None
    title: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "JobFilters":
        """Build filters from a camelCase query mapping (e.g. parsed query string)."""
        data = data or {}
        errors = validate_search(data)
        if errors:
            raise ValidationError("; ".join(errors))
        return cls(**{_ATTR_NAMES[k]: v for k, v in data.items()})


class FilterClause(NamedTuple):
    where_clause: str
    values: List[Any]


def sql_for_job_filters(filters: Optional[JobFilters] = None) -> FilterClause:
    """
    Turn search criteria into an AND-combined condition list.

    Filters are applied in a fixed order (min_salary, has_equity, title);
    each one adds a condition and at most one bound value, numbered after
    the values already collected. The returned clause has no WHERE keyword
    and is empty when nothing was specified.

    Raises:
        ValidationError: if min_salary is negative.
    """
    filters = filters or JobFilters()
    conditions: List[str] = []
    values: List[Any] = []

    if filters.min_salary is not None:
        if filters.min_salary < 0:
            raise ValidationError("minSalary must be greater than or equal to 0")
        values.append(filters.min_salary)
        conditions.append(f"salary >= ${len(values)}")

    if filters.has_equity is True:
        conditions.append("equity > 0")

    if filters.title:
        values.append(f"%{filters.title}%")
        conditions.append(f"title ILIKE ${len(values)}")

    return FilterClause(where_clause=" AND ".join(conditions), values=values)
