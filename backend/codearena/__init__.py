"""Online judge backend: submission queueing, Judge0 execution, scoring and contests."""

__version__ = "1.0.0"
