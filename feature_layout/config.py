import os
from dataclasses import dataclass

from dotenv import load_dotenv


def load_environment():
    """Load .env from the working directory, falling back to ~/.env"""
    for env_path in [".env", os.path.expanduser("~/.env")]:
        if os.path.exists(env_path):
            load_dotenv(dotenv_path=env_path)
            break
    else:
        load_dotenv()  # fallback to default behavior


@dataclass
class Settings:
    input_dir: str = "./input/"
    output_dir: str = "./owners/"
    data_dir: str = "./data/"
    logs_dir: str = "./logs"
    log_level: str = "INFO"
    index_numbering: str = "space_type"

    @classmethod
    def from_env(cls) -> "Settings":
        load_environment()
        return cls(
            input_dir=os.getenv("FEATURE_LAYOUT_INPUT_DIR", cls.input_dir),
            output_dir=os.getenv("FEATURE_LAYOUT_OUTPUT_DIR", cls.output_dir),
            data_dir=os.getenv("FEATURE_LAYOUT_DATA_DIR", cls.data_dir),
            logs_dir=os.getenv("FEATURE_LAYOUT_LOGS_DIR", cls.logs_dir),
            log_level=os.getenv("FEATURE_LAYOUT_LOG_LEVEL", cls.log_level).upper(),
            index_numbering=os.getenv("FEATURE_LAYOUT_INDEX_NUMBERING", cls.index_numbering),
        )
