import json
import logging
import math
import os
import re
import sys
import time

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(logs_dir: str, level: str = "INFO") -> str:
    """Log to a timestamped workflow file; the console only gets critical messages"""
    os.makedirs(logs_dir, exist_ok=True)
    log_file_path = os.path.join(logs_dir, f"workflow_{int(time.time())}.log")

    file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.CRITICAL)  # Only show critical messages

    logging.basicConfig(level=level, handlers=[file_handler, console_handler], force=True)
    return log_file_path


def print_status(message: str):
    """Print a status line for the user and mirror it to the log"""
    print(message, flush=True)
    logger.info(message)


def parse_number(value):
    """Parse a county number cell ("1,020.00", "2.500") into a finite float, or None"""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    else:
        s = re.sub(r"[^0-9.\-]", "", str(value))
        if not s:
            return None
        try:
            number = float(s)
        except ValueError:
            return None
    # overlong cells overflow to inf
    return number if math.isfinite(number) else None


def get_property_id(filename: str) -> str:
    base = os.path.basename(filename)
    return base.split('.')[0]


def read_json(path: str, default=None):
    if not os.path.exists(path):
        return default
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.warning(f"⚠️ Could not parse {path}: {e}")
        return default


def write_json(path: str, data):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
