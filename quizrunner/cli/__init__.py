"""Command-line front end for quizrunner.

A thin terminal presentation layer over :class:`quizrunner.app.QuizApp`.
"""

from .main import main

__all__ = ["main"]
