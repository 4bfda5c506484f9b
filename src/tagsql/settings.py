"""Settings for tagsql compilers."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class TagSqlSettings(BaseSettings):
    """tagsql configuration settings."""

    LOG_LEVEL: str = "INFO"

    # Placeholder numbering
    PLACEHOLDER_START: int = 1

    # Tag columns
    TAG_COLUMN: str = "tags"
    TAG_VALUE_ALIAS: Optional[str] = None
    TAG_UNNEST_FUNCTION: str = "json_array_elements_text"
    TAG_USE_UNNEST: bool = True  # False: tags live in a child table (flat mode)
    TAG_WILDCARD_MANY: str = "*"
    TAG_WILDCARD_ONE: str = "?"
    TAG_NEGATION_MARKER: str = "!"

    # Tag query parsing
    TAG_PARSE_LIMIT: int = -1  # -1 disables the limit
    TAG_CAN_REPEAT: bool = True

    # Ranking
    RANK_DEFAULT_OPERATOR: str = "LIKE"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = TagSqlSettings()
