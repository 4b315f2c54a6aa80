"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from azpipes.models import PipelineSpec
from azpipes.services.azure_devops.config import AzureDevOpsConfig

logger = logging.getLogger(__name__)


class PollingConfig(BaseModel):
    """Run status polling parameters."""

    interval_seconds: float = Field(default=30.0, gt=0)
    max_attempts: int | None = Field(default=None, gt=0)  # None polls until terminal


class Settings(BaseSettings):
    """Main configuration class."""

    # Paths
    data_dir: Path = Path("data")

    # Azure DevOps target
    organization: str = ""
    project: str = ""

    # API Keys
    pat: str = ""
    logfire_token: str = ""

    # Nested configuration sections
    polling: PollingConfig = Field(default_factory=PollingConfig)
    azure_devops: AzureDevOpsConfig = Field(default_factory=AzureDevOpsConfig)

    # Ordered; list order is execution order
    pipelines: list[PipelineSpec] = Field(default_factory=list)

    model_config = SettingsConfigDict(
        env_prefix="AZPIPES_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def resolve_data_dir(cls, v: Path) -> Path:
        """Resolve data directory to absolute path."""
        return v.resolve()

    @property
    def config_path(self) -> Path:
        return self.data_dir / "config.yaml"

    def load_yaml_config(self, config_path: Path | None = None) -> None:
        """Load and merge YAML configuration."""
        config_path = config_path or self.config_path

        if not config_path.exists():
            logger.warning(
                f"Config file not found: {config_path}. "
                "Using defaults. Run 'python -m azpipes init' to create it."
            )
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)

            if not yaml_config:
                logger.warning(f"Empty config file: {config_path}")
                return

            # Environment wins over YAML for the scalar target fields
            for field_name in ["organization", "project"]:
                if yaml_config.get(field_name) and not getattr(self, field_name):
                    setattr(self, field_name, str(yaml_config[field_name]))

            for section_name in ["polling", "azure_devops"]:
                if section_name in yaml_config:
                    section = getattr(self, section_name)
                    yaml_section = yaml_config[section_name] or {}

                    section_dict = section.model_dump()
                    section_dict.update(yaml_section)

                    new_section = section.__class__(**section_dict)
                    setattr(self, section_name, new_section)

            if "pipelines" in yaml_config:
                self.pipelines = [
                    PipelineSpec(**entry) for entry in yaml_config["pipelines"] or []
                ]

            logger.info(
                f"Loaded configuration from {config_path} "
                f"({len(self.pipelines)} pipelines)"
            )

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            raise


@lru_cache()
def get_settings(config_path: Path | None = None) -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_yaml_config(config_path)
    return settings
