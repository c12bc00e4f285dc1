"""VibeSphere Stage: posts, polls, comments and anonymous posting backend."""

__version__ = "0.1.0"
