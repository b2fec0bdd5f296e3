from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

SERVICE_ROOT = Path(__file__).resolve().parents[2]  # rx_reminder_service/
DEFAULT_ENV_FILE = SERVICE_ROOT / "config.env"


def load_env(env_path: Optional[Path] = None) -> bool:
    """Real environment variables win over config.env. False when there is no file."""
    path = env_path or DEFAULT_ENV_FILE
    if not path.is_file():
        return False
    return load_dotenv(dotenv_path=path, override=False)
