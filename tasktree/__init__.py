"""tasktree: hierarchical to-do tasks grouped into projects."""

__version__ = "0.1.0"
