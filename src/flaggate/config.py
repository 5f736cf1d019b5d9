"""クライアント設定（pydantic BaseModel）と YAML 読み込み"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import FlagGateError, FlagGateErrorCodes
from .models import ContextValue


class LogSection(BaseModel):
    """ログ設定。"""

    level: str = "INFO"
    format: Literal["json", "text"] = "json"


class FlagGateConfig(BaseModel):
    """FlagGateClient の設定。"""

    api_url: str
    api_key: str = ""
    cache_ttl_seconds: float = Field(default=60.0, gt=0)
    timeout_seconds: float = Field(default=5.0, gt=0)
    user: dict[str, ContextValue] = Field(default_factory=dict)
    log: LogSection = Field(default_factory=LogSection)

    @field_validator("api_url")
    @classmethod
    def _normalize_api_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("api_url must not be empty")
        return value.rstrip("/")


# 環境別設定でキー単位に上書きするセクション
_MERGED_SECTIONS = ("user", "log")


def overlay(base: dict[str, Any], env: dict[str, Any]) -> dict[str, Any]:
    """ベース設定に環境別設定を重ねた新しい辞書を返す。

    user と log はキー単位で上書きし、それ以外の項目は環境別設定の値で置き換える。
    """
    merged = {**base, **env}
    for section in _MERGED_SECTIONS:
        if isinstance(base.get(section), dict) and isinstance(env.get(section), dict):
            merged[section] = {**base[section], **env[section]}
    return merged


def _load_mapping(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise FlagGateError(
            code=FlagGateErrorCodes.CONFIG_ERROR,
            message=f"Failed to load config file {path}: {e}",
            cause=e,
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FlagGateError(
            code=FlagGateErrorCodes.CONFIG_ERROR,
            message=f"Config root must be a mapping: {path}",
        )
    return data


def load_config(base_path: Path, env_path: Path | None = None) -> FlagGateConfig:
    """設定ファイルを読み込んで FlagGateConfig を返す。

    env_path が指定され、かつ存在する場合はベース設定に重ねる。
    """
    data = _load_mapping(base_path)
    if env_path is not None and env_path.exists():
        data = overlay(data, _load_mapping(env_path))
    try:
        return FlagGateConfig.model_validate(data)
    except ValidationError as e:
        raise FlagGateError(
            code=FlagGateErrorCodes.CONFIG_ERROR,
            message=f"Invalid flaggate config {base_path}: {e}",
            cause=e,
        ) from e
