"""
Configuration management for the FamilySync handlers.
Handles environment variables, the YAML config file and default settings.
"""

import os
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

from config.loader import get_database_config, get_functions_config

# Load environment variables
load_dotenv()

DEFAULT_MAX_INSTANCES = 10


@dataclass
class Settings:
    """Runtime settings for the FamilySync handlers."""

    # Datastore block, e.g. {"type": "firestore", "project_id": "..."}
    database: Dict[str, Any] = field(default_factory=dict)

    # Handler limits
    max_instances: int = int(os.getenv("FAMILYSYNC_MAX_INSTANCES", DEFAULT_MAX_INSTANCES))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: Optional[str] = os.getenv("LOG_FILE")

    # Firebase Admin service-account key; ADC is used when unset
    credentials_path: Optional[str] = os.getenv("FIREBASE_SERVICE_ACCOUNT_KEY_PATH")

    # Trigger route callers: OIDC push token audience (and signing account), or a shared secret
    trigger_audience: Optional[str] = os.getenv("FAMILYSYNC_TRIGGER_AUDIENCE")
    trigger_service_account: Optional[str] = os.getenv("FAMILYSYNC_TRIGGER_SERVICE_ACCOUNT")
    trigger_secret: Optional[str] = os.getenv("FAMILYSYNC_TRIGGER_SECRET")

    def __post_init__(self):
        if not self.database:
            self.database = {
                "type": os.getenv("FAMILYSYNC_DATASTORE", "firestore"),
                "project_id": os.getenv("GOOGLE_CLOUD_PROJECT"),
            }

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        return cls()

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "Settings":
        """Create settings from dictionary."""
        return cls(**config_dict)

    @classmethod
    def from_yaml(cls, config_path: str = "config.yaml") -> "Settings":
        """Create settings from the YAML config file, falling back to env defaults."""
        settings = cls(database=get_database_config(config_path) or {})
        functions = get_functions_config(config_path) or {}
        if functions.get("max_instances") is not None:
            settings.max_instances = int(functions["max_instances"])
        if functions.get("log_level"):
            settings.log_level = functions["log_level"]
        if functions.get("trigger_audience"):
            settings.trigger_audience = functions["trigger_audience"]
        if functions.get("trigger_service_account"):
            settings.trigger_service_account = functions["trigger_service_account"]
        return settings

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return {
            "database": self.database,
            "max_instances": self.max_instances,
            "log_level": self.log_level,
            "log_file": self.log_file,
            "credentials_path": self.credentials_path,
            "trigger_audience": self.trigger_audience,
            "trigger_service_account": self.trigger_service_account,
            "trigger_secret": self.trigger_secret,
        }

    def validate(self) -> bool:
        """Validate settings."""
        if self.max_instances < 1:
            raise ValueError("Configuration field 'max_instances' must be at least 1")

        backend = self.database.get("type")
        if backend not in ("firestore", "memory"):
            raise ValueError(f"Unsupported datastore type: {backend}")

        if backend == "firestore" and not (self.database.get("project_id") or self.credentials_path):
            raise ValueError("Firestore requires `project_id` or a service-account key path")

        return True
