### Description ###
# CRM Gateway - Multi-tenant External API
# - Custom Logger Setup -
# Date: 10/17/2026
# Python: 3.11
####################

# Standard Imports
import logging
from datetime import datetime
from pathlib import Path


class CustomFormatter(logging.Formatter):
    """Custom formatter for CRM Gateway logging with specific time format"""

    def format(self, record):
        """
        Format log record with custom time format: HH:MM:SS AM/PM - name - LEVEL:

        Args:
            record: LogRecord instance

        Returns:
            Formatted log string
        """
        timestamp = datetime.fromtimestamp(record.created).strftime("%I:%M:%S %p")

        formatted_msg = f"{timestamp} - {record.name} - {record.levelname}: {record.getMessage()}"

        if record.exc_info:
            formatted_msg += "\n" + self.formatException(record.exc_info)

        return formatted_msg


def setup_logger(
    name: str,
    level: int | str = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    logs_dir: Path | str = "logs",
) -> logging.Logger:
    """
    Set up a custom logger for CRM Gateway

    Args:
        name: Logger name (typically __name__)
        level: Logging level, as a number or a name like "INFO" (default: INFO)
        log_to_file: Whether to log to a date-stamped file in logs_dir (default: True)
        log_to_console: Whether to log to console (default: True)
        logs_dir: Directory for log files (default: ./logs)

    Returns:
        Configured logger instance

    Example:
        logger = setup_logger("crm_gateway")
        logger.info("This is an info message")
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers if logger already exists
    if logger.handlers:
        return logger

    formatter = CustomFormatter()

    if log_to_file:
        logs_path = Path(logs_dir)
        logs_path.mkdir(exist_ok=True)

        log_filename = f"crm_gateway_{datetime.now().strftime('%Y-%m-%d')}.log"
        file_handler = logging.FileHandler(logs_path / log_filename, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
