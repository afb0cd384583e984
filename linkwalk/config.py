"""
Loading and validation of the LinkWalk configuration.

The schema is described with Pydantic; files are YAML or JSON.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Annotated, Any, List, Optional, Union

import yaml
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    model_validator,
)

from linkwalk.crawler.models import Policy
from linkwalk.errors import SelectorError
from linkwalk.parser.html_parser import Selector
from linkwalk.utils import compile_pattern

__all__ = ["CrawlConfig", "SiteProfile", "load_config", "WALK_POLICIES"]

WALK_POLICIES = frozenset({Policy.RANDOM, Policy.EXTERNAL})


def _check_query(v: str) -> str:
    try:
        Selector(v)
    except SelectorError as exc:
        raise ValueError(str(exc)) from exc
    return v


def _check_pattern(v: Optional[str]) -> Optional[str]:
    compile_pattern(v)
    return v


CssQuery = Annotated[str, AfterValidator(_check_query)]
LinkPattern = Annotated[Optional[str], AfterValidator(_check_pattern)]


class SiteProfile(BaseModel):
    """Where to find target pages on a site and how to read them."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    url: HttpUrl
    target_pattern: LinkPattern = Field(None, description="Regex applied to raw hrefs of the start page.")
    absolute_url: bool = Field(False, description="Hrefs are absolute; do not resolve against url.")
    title_query: CssQuery = "h1"
    body_query: CssQuery = "body"


class CrawlConfig(BaseModel):
    """Configuration of one traversal run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    seed_url: Optional[HttpUrl] = Field(None, description="Start page of the traversal.")
    policy: Policy = Field(Policy.INTERNAL, description="internal, random, external or harvest.")
    link_query: CssQuery = Field("a[href]", description="CSS query selecting link elements.")
    link_pattern: LinkPattern = Field(None, description="Regex a raw href must match to be followed.")
    max_steps: Optional[int] = Field(None, ge=1, description="Hop limit, required for random walks.")
    max_pages: Optional[int] = Field(None, ge=1, description="Page limit for the internal crawl.")
    timeout: float = Field(10.0, gt=0, description="Per-request timeout (seconds).")
    user_agent: str = Field("LinkWalkBot/1.0", min_length=1)
    retry_times: int = Field(0, ge=0, description="Retries on 5xx/429.")
    random_seed: Optional[int] = Field(None, description="Seed for reproducible walks.")
    reanchor: bool = Field(False, description="External walk: classify against the current page's origin.")
    sites: List[SiteProfile] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_policy_inputs(self) -> CrawlConfig:
        if self.policy is Policy.HARVEST:
            if not self.sites:
                raise ValueError("policy 'harvest' needs at least one entry in sites")
            return self
        if self.seed_url is None:
            raise ValueError(f"policy {self.policy.value!r} needs seed_url")
        if self.policy in WALK_POLICIES and self.max_steps is None:
            raise ValueError(f"policy {self.policy.value!r} needs max_steps")
        return self


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def read_config_data(path: Union[str, Path, None]) -> dict[str, Any]:
    """Raw mapping from a YAML/JSON file (``configs/default.yaml`` when *path* is None)."""
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: Union[str, Path, None], **overrides: Any) -> CrawlConfig:
    """
    Read YAML or JSON and return a validated CrawlConfig.

    Keyword *overrides* that are not None replace file values before
    validation (the CLI passes its options this way).
    """
    data = read_config_data(path)
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return CrawlConfig(**data)
    except ValidationError:
        raise
