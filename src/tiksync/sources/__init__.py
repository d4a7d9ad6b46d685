from .queue import QueueDirectory

__all__ = ["QueueDirectory"]
