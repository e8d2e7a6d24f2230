import math

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class PaginatePage:
    def normalize(self, page: int | None, limit: int | None) -> tuple[int, int]:
        page = max(int(page or 1), 1)
        limit = int(limit or DEFAULT_LIMIT)
        limit = min(max(limit, 1), MAX_LIMIT)
        return page, limit

    def offset(self, page: int, limit: int) -> int:
        return (page - 1) * limit

    def meta(self, page: int, limit: int, total: int) -> dict:
        return {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        }
