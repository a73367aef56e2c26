import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseModel):
    hops_api_url: str
    games_api_url: str
    secret_header_name: Optional[str] = None
    secret_header_value: Optional[str] = None
    http_timeout_s: float = 10
    solve_cache_size: int = 1000
    query_cache_size: int = 100
    solve_db_path: str = "hopchain.db"
    log_level: str = "INFO"

    @property
    def secret_header(self) -> Optional[tuple[str, str]]:
        if self.secret_header_name and self.secret_header_value:
            return self.secret_header_name, self.secret_header_value
        return None

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Read settings from the environment (and a .env file, if present). The hops and games
        service URLs are required.
        """
        values = {}
        for var in ("HOPS_API_URL", "GAMES_API_URL"):
            value = os.getenv(var)
            if not value:
                raise ValueError(f"{var} is required. Set the {var} env var.")
            values[var.lower()] = value

        optional = {
            "secret_header_name": "INTERNAL_SECRET_HEADER_NAME",
            "secret_header_value": "INTERNAL_SECRET_HEADER_VALUE",
            "http_timeout_s": "HTTP_TIMEOUT_S",
            "solve_cache_size": "SOLVE_CACHE_SIZE",
            "query_cache_size": "QUERY_CACHE_SIZE",
            "solve_db_path": "SOLVE_DB_PATH",
            "log_level": "LOG_LEVEL",
        }
        for field, var in optional.items():
            value = os.getenv(var)
            if value:
                values[field] = value

        return cls(**values)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
