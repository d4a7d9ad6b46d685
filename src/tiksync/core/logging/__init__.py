from .setup import configure_logging, get_logger, latest_log_file, log_paths, tail_log

__all__ = ["configure_logging", "get_logger", "latest_log_file", "log_paths", "tail_log"]
