"""
Metadata ledger for variables: one row per (user_id, key), kept in step with the blob store by
the VariableStore orchestrator. Every query is scoped to the owning user.
"""
import logging
from typing import List, Optional, Set, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from cloud_variables.core.errors import ConflictError, NotFoundError, UnavailableError
from cloud_variables.db.base import utcnow
from cloud_variables.models.variable import Variable
from cloud_variables.utils.pagination import escape_like

logger = logging.getLogger(__name__)

_UNAVAILABLE_MESSAGE = "Variable metadata temporarily unavailable"


class VariableLedger:
    def __init__(self, db: Session):
        self.db = db

    def _fail(self, e: SQLAlchemyError, action: str):
        self.db.rollback()
        logger.exception("Ledger %s failed: %s", action, type(e).__name__)
        raise UnavailableError(_UNAVAILABLE_MESSAGE) from e

    def insert(
        self,
        user_id: int,
        key: str,
        description: Optional[str],
        size_bytes: int,
        storage_path: str,
        is_encrypted: bool = False,
        tags: Optional[List[str]] = None,
    ) -> Variable:
        variable = Variable(
            user_id=user_id,
            key=key,
            description=description,
            size_bytes=size_bytes,
            version=1,
            storage_path=storage_path,
            is_encrypted=is_encrypted,
            tags=tags,
        )
        try:
            self.db.add(variable)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Variable with key '{key}' already exists") from e
        except SQLAlchemyError as e:
            self._fail(e, "insert")
        self.db.refresh(variable)
        return variable

    def find_by_id(self, variable_id: int, user_id: int) -> Optional[Variable]:
        try:
            return self.db.query(Variable).filter(
                Variable.id == variable_id,
                Variable.user_id == user_id,
            ).first()
        except SQLAlchemyError as e:
            self._fail(e, "lookup")

    def find_by_key(self, key: str, user_id: int) -> Optional[Variable]:
        try:
            return self.db.query(Variable).filter(
                Variable.key == key,
                Variable.user_id == user_id,
            ).first()
        except SQLAlchemyError as e:
            self._fail(e, "lookup")

    def list(
        self,
        user_id: int,
        page: int,
        page_size: int,
        search: Optional[str] = None,
    ) -> Tuple[List[Variable], int]:
        """
        One page of the user's variables, newest first.

        Returns:
            (rows, total) where total counts every row matching the search, not just this page.
        """
        query = self.db.query(Variable).filter(Variable.user_id == user_id)
        if search:
            query = query.filter(Variable.key.ilike(f"%{escape_like(search)}%", escape="\\"))
        try:
            total = query.count()
            rows = (
                query.order_by(Variable.created_at.desc(), Variable.id.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
                .all()
            )
        except SQLAlchemyError as e:
            self._fail(e, "list")
        return rows, total

    def update(
        self,
        variable_id: int,
        user_id: int,
        description: Optional[str] = None,
        size_bytes: Optional[int] = None,
        tags: Optional[List[str]] = None,
    ) -> Variable:
        values = {"version": Variable.version + 1, "updated_at": utcnow()}
        if description is not None:
            values["description"] = description
        if size_bytes is not None:
            values["size_bytes"] = size_bytes
        if tags is not None:
            values["tags"] = tags

        try:
            updated = self.db.query(Variable).filter(
                Variable.id == variable_id,
                Variable.user_id == user_id,
            ).update(values, synchronize_session=False)
            if not updated:
                self.db.rollback()
                raise NotFoundError("Variable not found")
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail(e, "update")

        variable = self.find_by_id(variable_id, user_id)
        if variable is None:
            raise NotFoundError("Variable not found")
        self.db.refresh(variable)
        return variable

    def delete(self, variable_id: int, user_id: int) -> Variable:
        """Remove the row and return it so the caller can clean up its blob."""
        variable = self.find_by_id(variable_id, user_id)
        if variable is None:
            raise NotFoundError("Variable not found")
        try:
            self.db.delete(variable)
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail(e, "delete")
        return variable

    def count_by_user(self, user_id: int) -> int:
        try:
            return self.db.query(Variable).filter(Variable.user_id == user_id).count()
        except SQLAlchemyError as e:
            self._fail(e, "count")

    def storage_paths_for_user(self, user_id: int) -> List[str]:
        try:
            return [
                row.storage_path
                for row in self.db.query(Variable.storage_path).filter(Variable.user_id == user_id)
            ]
        except SQLAlchemyError as e:
            self._fail(e, "path listing")

    def all_storage_paths(self) -> Set[str]:
        try:
            return {row.storage_path for row in self.db.query(Variable.storage_path)}
        except SQLAlchemyError as e:
            self._fail(e, "path listing")
