"""Internal helpers for dtl."""
