import json
import os
from typing import Optional

from pydantic import BaseModel, Field

from gomarket_cart.store import STORAGE_KEY
from gomarket_cart.storage import STATE_PATH


class StorageConfig(BaseModel):
    backend: str = "file"  # "file" or "memory"
    path: str = STATE_PATH
    key: str = STORAGE_KEY


class ServerConfig(BaseModel):
    log_level: str = "INFO"


class CartConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


def load_config(path: Optional[str] = None) -> CartConfig:
    config_path = path or os.environ.get("CONFIG_PATH", "/config/config.json")
    if not os.path.exists(config_path):
        if path:
            raise FileNotFoundError(f"Config file not found at {config_path}.")
        return CartConfig()
    with open(config_path) as f:
        data = json.load(f)
    return CartConfig(**data)
