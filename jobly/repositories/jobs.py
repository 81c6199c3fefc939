"""
Jobs Repository.

Responsibilities:
- CRUD operations for the jobs table.
- Turning search criteria and partial updates into bound SQL.

Non-Responsibilities:
- No connection pooling, retries or transactions spanning calls.
- No referential checks on company_handle (the store enforces them).

Invariant:
Caller values only ever reach the store as bound parameters.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from ..database import Store
from ..errors import NotFoundError, ValidationError
from ..filters import JobFilters, sql_for_job_filters
from ..logger import StructuredLogger, get_logger
from ..schema import validate_job, validate_job_update
from ..sql import sql_for_partial_update

JOB_COLUMNS = 'id, title, salary, equity, company_handle AS "companyHandle"'

Record = Dict[str, Any]


class JobRepository:
    """Create, read, update and delete jobs through an injected store."""

    def __init__(self, store: Store, logger: Optional[StructuredLogger] = None):
        self.store = store
        self.logger = logger or get_logger()

    def _not_found(self, operation: str, key: Any) -> NotFoundError:
        self.logger.warning(f"{operation}: job not found", key=key)
        self.logger.record_failure(operation, NotFoundError.__name__)
        return NotFoundError(f"No job: {key}")

    def _invalid(self, operation: str, message: str) -> ValidationError:
        self.logger.record_failure(operation, ValidationError.__name__)
        return ValidationError(message)

    def _execute(self, operation: str, query: str, values: List[Any]) -> List[Record]:
        """Run one store call; store errors are counted and re-raised unchanged."""
        try:
            return self.store.execute(query, values)
        except Exception as e:
            self.logger.error(f"{operation}: store call failed", error=type(e).__name__)
            self.logger.record_failure(operation, type(e).__name__)
            raise

    def create(
        self,
        title: str,
        salary: Optional[int] = None,
        equity: Optional[float] = None,
        company_handle: Optional[str] = None,
    ) -> Record:
        """
        Create a job and return it with its generated id.

        Returns { id, title, salary, equity, companyHandle }

        Duplicate titles are allowed. An unknown company_handle fails in the
        store with its own integrity error.
        """
        self.logger.record_operation("create")
        errors = validate_job({
            "title": title,
            "salary": salary,
            "equity": equity,
            "companyHandle": company_handle,
        })
        if errors:
            raise self._invalid("create", "; ".join(errors))

        rows = self._execute(
            "create",
            f"""INSERT INTO jobs
                (title, salary, equity, company_handle)
                VALUES ($1, $2, $3, $4)
                RETURNING {JOB_COLUMNS}""",
            [title, salary, equity, company_handle],
        )
        job = rows[0]
        self.logger.info("Job created", id=job["id"], company=company_handle)
        return job

    def find_all(
        self,
        filters: Union[JobFilters, Mapping[str, Any], None] = None,
    ) -> List[Record]:
        """
        Find all jobs matching the optional filters, ordered by title.

        filters may be a JobFilters or a mapping with any of
        minSalary, hasEquity, title.

        Returns [{ id, title, salary, equity, companyHandle }, ...]
        """
        self.logger.record_operation("find_all")
        try:
            if not isinstance(filters, JobFilters):
                filters = JobFilters.from_mapping(filters)
            where_clause, values = sql_for_job_filters(filters)
        except ValidationError as e:
            raise self._invalid("find_all", e.message) from e

        query = f"""SELECT {JOB_COLUMNS}
                 FROM jobs"""
        if where_clause:
            query += " WHERE " + where_clause
        query += " ORDER BY title"

        jobs = self._execute("find_all", query, values)
        self.logger.debug("Jobs listed", count=len(jobs), params=len(values))
        return jobs

    def get(self, title: str) -> Record:
        """
        Given a job title, return the earliest-created job with that title.

        Returns { id, title, salary, equity, companyHandle }

        Throws NotFoundError if not found.
        """
        self.logger.record_operation("get")
        rows = self._execute(
            "get",
            f"""SELECT {JOB_COLUMNS}
                FROM jobs
                WHERE title = $1
                ORDER BY id
                LIMIT 1""",
            [title],
        )
        if not rows:
            raise self._not_found("get", title)
        return rows[0]

    def update(self, id: int, data: Mapping[str, Any]) -> Record:
        """
        Update job data with `data`.

        This is a "partial update": only the given fields change. Data can
        include { title, salary, equity }; id and companyHandle are fixed.

        Returns { id, title, salary, equity, companyHandle }

        Throws ValidationError on an empty or malformed payload (before any
        query), NotFoundError if no job has this id.
        """
        self.logger.record_operation("update")
        errors = validate_job_update(data)
        if errors:
            raise self._invalid("update", "; ".join(errors))
        try:
            set_cols, values = sql_for_partial_update(data, {})
        except ValidationError as e:
            raise self._invalid("update", e.message) from e

        id_var_idx = "$" + str(len(values) + 1)
        query = f"""UPDATE jobs
                    SET {set_cols}
                    WHERE id = {id_var_idx}
                    RETURNING {JOB_COLUMNS}"""
        rows = self._execute("update", query, [*values, id])
        if not rows:
            raise self._not_found("update", id)

        self.logger.info("Job updated", id=id, fields=list(data.keys()))
        return rows[0]

    def remove(self, title: str) -> None:
        """
        Delete every job with the given title; returns None.

        Not idempotent: removing a title that no longer exists fails.

        Throws NotFoundError if no job has this title.
        """
        self.logger.record_operation("remove")
        rows = self._execute(
            "remove",
            """DELETE
               FROM jobs
               WHERE title = $1
               RETURNING id""",
            [title],
        )
        if not rows:
            raise self._not_found("remove", title)

        self.logger.info("Job removed", title=title, count=len(rows))
