"""Console study tutor: curriculum-aligned explanations, quizzes and review."""

__version__ = "0.1.0"
