SOURCE_PREVIEW_LIMIT = 500


def compute_progress(cells_completed: int, cells_total: int) -> int:
    """Integer percentage of executed cells, floored and clamped to 0..100."""
    if cells_total <= 0:
        return 0
    return max(0, min(100, (100 * cells_completed) // cells_total))


def truncate_source(source: str, limit: int = SOURCE_PREVIEW_LIMIT) -> str:
    if len(source) > limit:
        return source[:limit] + "..."
    return source
