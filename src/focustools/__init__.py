"""FocusTools - task list with a Pomodoro focus timer and REST API."""

__version__ = "0.1.0"
