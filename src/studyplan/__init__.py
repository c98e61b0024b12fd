"""studyplan - deadline-driven study session planner."""

__version__ = "0.1.0"
