"""
Runtime settings, read from the environment (and a .env file if present).
"""
import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


class Settings:
    def __init__(self) -> None:
        self.host = os.getenv("GOMOKU_HOST", "127.0.0.1").strip()
        self.port = int(os.getenv("GOMOKU_PORT", "3000"))
        self.log_level = os.getenv("GOMOKU_LOG_LEVEL", "INFO").strip().upper()
        self.cors_origins: List[str] = [
            origin.strip()
            for origin in os.getenv("GOMOKU_CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]


settings = Settings()
