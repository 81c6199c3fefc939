import math
from decimal import Decimal
from numbers import Real
from typing import Any, List, Mapping

REQUIRED_STR_FIELDS = ["title", "companyHandle"]
UPDATABLE_FIELDS = ["title", "salary", "equity"]
SEARCH_FIELDS = ["minSalary", "hasEquity", "title"]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_number(v: Any) -> bool:
    # Decimal is not a registered Real; NUMERIC columns come back as Decimal.
    if isinstance(v, bool) or not isinstance(v, (Real, Decimal)):
        return False
    return v.is_finite() if isinstance(v, Decimal) else math.isfinite(v)


def _check_salary(data: Mapping[str, Any], errors: List[str]) -> None:
    v = data.get("salary")
    if v is None:
        return
    if not isinstance(v, int) or isinstance(v, bool):
        errors.append("Field 'salary' must be an integer if provided")
    elif v < 0:
        errors.append("Field 'salary' must be greater than or equal to 0")


def _check_equity(data: Mapping[str, Any], errors: List[str]) -> None:
    v = data.get("equity")
    if v is None:
        return
    if not _is_number(v):
        errors.append("Field 'equity' must be a number if provided")
    elif not 0 <= v <= 1:
        errors.append("Field 'equity' must be between 0 and 1")


def validate_job(data: Mapping[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages for a new job. Empty list means valid.
    """
    errors: List[str] = []

    for f in REQUIRED_STR_FIELDS:
        if f not in data or data[f] is None:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    _check_salary(data, errors)
    _check_equity(data, errors)
    return errors


def validate_job_update(data: Mapping[str, Any]) -> List[str]:
    """
    Validate a partial-update payload. An empty payload is not an error
    here; the SET clause builder rejects it.
    """
    errors: List[str] = []

    unknown = [k for k in data if k not in UPDATABLE_FIELDS]
    if unknown:
        errors.append(f"Cannot update field(s): {', '.join(sorted(unknown))}")

    if "title" in data and not _is_non_empty_str(data["title"]):
        errors.append("Field 'title' must be a non-empty string")

    _check_salary(data, errors)
    _check_equity(data, errors)
    return errors


def validate_search(data: Mapping[str, Any]) -> List[str]:
    """Check the shape of job search criteria (range checks happen when building SQL)."""
    errors: List[str] = []

    unknown = [k for k in data if k not in SEARCH_FIELDS]
    if unknown:
        errors.append(f"Unknown search field(s): {', '.join(sorted(unknown))}")

    if data.get("minSalary") is not None and not _is_number(data["minSalary"]):
        errors.append("Field 'minSalary' must be a number")
    if data.get("hasEquity") is not None and not isinstance(data["hasEquity"], bool):
        errors.append("Field 'hasEquity' must be a boolean")
    if data.get("title") is not None and not isinstance(data["title"], str):
        errors.append("Field 'title' must be a string")

    return errors
