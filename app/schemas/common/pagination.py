import math
from pydantic import BaseModel


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PageMeta":
        return cls(
            total=total,
            page=page,
            limit=limit,
            totalPages=math.ceil(total / limit) if limit else 0,
        )
