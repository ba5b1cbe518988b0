from collections.abc import Sequence
from typing import Any, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.interfaces import ORMOption

T = TypeVar("T")


async def paginate(
    db: AsyncSession,
    query: Select[tuple[T]],
    *,
    page: int,
    limit: int,
    order_by: Sequence[Any],
    options: Sequence[ORMOption] = (),
) -> tuple[list[T], int]:
    """Run ``query`` for one page and return the rows with the unpaged total."""
    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar_one()

    result = await db.execute(
        query.options(*options)
        .order_by(*order_by)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total
