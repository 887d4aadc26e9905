"""Global configuration — loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class WorldshiftSettings(BaseSettings):
    workspace_dir: Path = Path(".worldshift")
    db_path: Path = Path(".worldshift/world.db")
    log_level: str = "INFO"

    # Where the world schema version lives in the settings store
    settings_namespace: str = "world"
    schema_version_key: str = "worldSchemaVersion"

    model_config = {"env_prefix": "WORLDSHIFT_"}


settings = WorldshiftSettings()
