# app/crud/rows.py
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import asc, desc, select, update, delete
from sqlalchemy.orm import Session

from app.models.base import Base


def row_to_dict(obj: Base) -> Dict[str, Any]:
    """Column values as JSON-friendly primitives (same shape PostgREST returns)."""
    out: Dict[str, Any] = {}
    for col in obj.__table__.columns:
        value = getattr(obj, col.name)
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, Decimal):
            value = float(value)
        out[col.name] = value
    return out


def _column(model: Type[Base], name: str):
    col = model.__table__.columns.get(name)
    if col is None:
        raise KeyError(f"{model.__tablename__} has no column {name!r}")
    return col


def list_rows(db: Session, model: Type[Base], *, order_by: str, ascending: bool) -> List[Dict[str, Any]]:
    col = _column(model, order_by)
    # NULLs sort as the largest value, like PostgREST; tie-break on id
    order = asc(col).nulls_last() if ascending else desc(col).nulls_first()
    stmt = select(model).order_by(order, asc(_column(model, "id")))
    return [row_to_dict(r) for r in db.execute(stmt).scalars().all()]


def get_row(db: Session, model: Type[Base], row_id: str) -> Optional[Dict[str, Any]]:
    obj = db.get(model, row_id)
    return row_to_dict(obj) if obj is not None else None


def insert_row(db: Session, model: Type[Base], record: Dict[str, Any]) -> Dict[str, Any]:
    for key in record:
        _column(model, key)
    obj = model(**record)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return row_to_dict(obj)


def update_rows(
    db: Session,
    model: Type[Base],
    row_id: str,
    changes: Dict[str, Any],
    match: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """
    UPDATE ... WHERE id = :id [AND col = :val ...]. Returns the updated rows,
    so an empty list means the preconditions did not match.
    """
    where = [_column(model, "id") == row_id]
    for key, value in (match or {}).items():
        where.append(_column(model, key) == value)
    for key in changes:
        _column(model, key)
    res = db.execute(update(model).where(*where).values(**changes))
    db.commit()
    if not res.rowcount:
        return []
    row = get_row(db, model, row_id)
    return [row] if row is not None else []


def delete_row(db: Session, model: Type[Base], row_id: str) -> bool:
    res = db.execute(delete(model).where(_column(model, "id") == row_id))
    db.commit()
    return bool(res.rowcount)
