from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Class to store all the settings of the library."""

    ENTROPY_LOG_BASE: float = Field(
        default=2.0,
        gt=0,
        description="Logarithm base used for every entropy computation of a build.",
    )
    SAVE_DIR: str = Field(
        default="id3trees",
        description="Parent directory used by ID3.save when no path is given.",
    )

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_prefix="ID3_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()  # type: ignore
