from __future__ import annotations  # Configuration schema for LLM routing

from pathlib import Path
from typing import Dict, Iterable

from pydantic import BaseModel, Field


class LlmRoute(BaseModel):  # LLM endpoint configuration
    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    max_retries: int = Field(default=2, ge=0)
    api_key_env: str | None = None
    temperature: float | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    sequential: bool = False


class AppConfig(BaseModel):  # Application configuration root
    llm_routes: Dict[str, LlmRoute]
    registry: Dict[str, str]


def load_config(path: Path) -> AppConfig:  # Load configuration from disk
    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def resolve_routes(cfg: AppConfig, targets: Iterable[str]) -> Dict[str, LlmRoute]:  # Map registry targets to routes
    resolved: Dict[str, LlmRoute] = {}
    for target in targets:
        if target not in cfg.registry:
            raise KeyError(f"Registry entry missing for '{target}'")
        route_id = cfg.registry[target]
        if route_id not in cfg.llm_routes:
            raise KeyError(f"Route '{route_id}' missing for '{target}'")
        resolved[target] = cfg.llm_routes[route_id]
    return resolved


def load_routes(path: Path, targets: Iterable[str]) -> Dict[str, LlmRoute]:  # Load config and resolve routes
    cfg = load_config(path)
    return resolve_routes(cfg, targets)
