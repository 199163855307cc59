"""
Runtime settings for the BaZi core.

Values come from the environment (prefix ``BAZI_``) or a local ``.env``:

    BAZI_PROVIDER=lunar
    BAZI_DEFAULT_UTC_OFFSET=8
    BAZI_EPHE_PATH=/opt/ephe
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Swiss Ephemeris data files live next to the package.
# Without them pyswisseph falls back to Moshier.
DEFAULT_EPHE_PATH = str(Path(__file__).parent.parent / "ephe")


class Settings(BaseSettings):
    # Calendar backend used when the caller does not pass one
    provider: str = "swisseph"

    # Reference zone for civil input (China Standard Time)
    default_utc_offset: float = 8.0

    # Swiss Ephemeris
    ephe_path: str = ""

    # lunar-python EightChar sect (2 = day changes at 00:00)
    lunar_sect: int = 2

    # Chart output
    luck_pillar_count: int = 8

    # CLI
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="BAZI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def resolved_ephe_path(self) -> str:
        return self.ephe_path or DEFAULT_EPHE_PATH


def get_settings() -> Settings:
    return Settings()
