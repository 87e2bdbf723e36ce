"""Client media intake and Kanban production board service."""

__version__ = "1.0.0"
