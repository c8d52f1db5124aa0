"""Small text helpers shared by the extractor and the annotator."""

ELLIPSIS = "..."


def truncate_with_ellipsis(text: str, max_length: int) -> str:
    """
    Cut text to at most max_length characters, ending in "..." when cut.

    Example:
        truncate_with_ellipsis("abcdefghij", 8) -> "abcde..."
    """
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS
