"""Boundary-aware text chunking for course content indexing."""

# Boundaries tried in order; each entry is (separator, chars of separator kept in chunk)
_BOUNDARIES: tuple[tuple[str, int], ...] = (
    ("\n\n", 2),  # paragraph
    (". ", 2),  # sentence
    (" ", 1),  # word
)


def _snap_end(text: str, start: int, end: int, size: int) -> int:
    """Pull ``end`` back to the last natural boundary in the window.

    A boundary is only accepted when it falls in the second half of the
    window, otherwise the raw size cut is kept.
    """
    window = text[start:end]
    min_offset = size / 2

    for separator, keep in _BOUNDARIES:
        idx = window.rfind(separator)
        if idx > min_offset:
            return start + idx + keep

    return end


def chunk_spans(text: str, size: int = 1000, overlap: int = 200) -> list[tuple[int, int]]:
    """
    Compute ``(start, end)`` offsets of overlapping chunks.

    Consecutive spans overlap by ``overlap`` characters unless that would
    stall the window, in which case the next span starts where the previous
    one ended. Every span is at most ``size`` characters long and together
    they cover the whole input.

    Args:
        text: Text to split
        size: Maximum characters per chunk
        overlap: Characters shared by consecutive chunks

    Returns:
        Ordered list of half-open ``(start, end)`` offsets

    Raises:
        ValueError: If size is not positive or overlap is negative
    """
    if size <= 0:
        raise ValueError(f"size ({size}) must be positive")
    if overlap < 0:
        raise ValueError(f"overlap ({overlap}) must not be negative")

    if not text:
        return []

    text_length = len(text)
    if text_length <= size:
        return [(0, text_length)]

    spans: list[tuple[int, int]] = []
    start = 0

    while start < text_length:
        end = min(start + size, text_length)
        if end < text_length:
            end = _snap_end(text, start, end, size)

        spans.append((start, end))

        if end >= text_length:
            break

        next_start = end - overlap
        # Forward progress: overlap >= chunk length would otherwise loop forever
        if next_start <= start or next_start <= end - size:
            next_start = end
        start = next_start

    return spans


def chunk_text(text: str, size: int = 1000, overlap: int = 200) -> list[str]:
    """
    Split text into bounded, overlapping chunks at natural boundaries.

    Prefers paragraph breaks, then sentence breaks, then word breaks, as
    long as the boundary lands in the second half of the window.

    Args:
        text: Text to split
        size: Maximum characters per chunk
        overlap: Characters shared by consecutive chunks

    Returns:
        Ordered list of chunk strings (``[text]`` when it already fits)
    """
    return [text[start:end] for start, end in chunk_spans(text, size, overlap)]
