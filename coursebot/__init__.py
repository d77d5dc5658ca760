"""CourseBot: course catalog API with an AI course assistant."""

__version__ = "1.0.0"
