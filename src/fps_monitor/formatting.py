"""Formatting utilities for consistent CLI output."""


def format_elapsed(seconds: float) -> str:
    """Format a session duration compactly.

    Returns:
        - Under a minute: "12.3s"
        - Under an hour: "4m 05s"
        - Otherwise: "1h 02m 03s"
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    total = int(seconds)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s"
