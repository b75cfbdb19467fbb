"""Configuration loading and validation for unslop."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from unslop.models.findings import Category

MAX_CONCURRENCY_CAP = 8
ROLLBACK_STRATEGIES = ("snapshot", "vcs")
DEFAULT_CONFIG_FILES = ("unslop.yaml", ".unslop.yaml")


@dataclass
class ScanSettings:
    """Scan configuration."""

    base_ref: str = "main"
    max_commits: int = 50
    include_commits: bool = True
    ignore_patterns: list[str] = field(
        default_factory=lambda: [".unslop/*", "node_modules/*", ".git/*", "CHANGELOG.md"]
    )
    catalogs: list[str] = field(default_factory=list)


@dataclass
class PoolSettings:
    """Scanner pool configuration."""

    max_concurrency: int = 4
    timeout_seconds: float | None = None


@dataclass
class StoreSettings:
    """Report store configuration."""

    path: str = ".unslop/report.json"


@dataclass
class RemediationSettings:
    """Remediation configuration."""

    require_clean_tree: bool = True
    rollback_strategy: str = "snapshot"


@dataclass
class GitHubSettings:
    """GitHub integration configuration."""

    token: str = ""
    base_url: str | None = None


@dataclass
class Config:
    """Complete application configuration."""

    scan: ScanSettings = field(default_factory=ScanSettings)
    pool: PoolSettings = field(default_factory=PoolSettings)
    store: StoreSettings = field(default_factory=StoreSettings)
    remediation: RemediationSettings = field(default_factory=RemediationSettings)
    github: GitHubSettings = field(default_factory=GitHubSettings)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Path to config file (default: unslop.yaml, then .unslop.yaml)

    Returns:
        Loaded configuration
    """
    if config_path is None:
        for candidate in DEFAULT_CONFIG_FILES:
            config_path = Path(candidate)
            if config_path.exists():
                break

    raw_config: dict[str, Any] = {}
    if config_path is not None and config_path.exists():
        with open(config_path) as f:
            raw_config = yaml.safe_load(f) or {}

    raw_config = _expand_env_vars(raw_config)

    return _parse_config(raw_config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in config."""
    if isinstance(obj, str):
        if obj.startswith("${") and obj.endswith("}"):
            env_var = obj[2:-1]
            return os.environ.get(env_var, "")
        return obj
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def _parse_config(raw: dict[str, Any]) -> Config:
    """Parse raw config dict into Config object."""
    defaults = ScanSettings()

    scan_raw = raw.get("scan", {})
    scan = ScanSettings(
        base_ref=scan_raw.get("base_ref", defaults.base_ref),
        max_commits=scan_raw.get("max_commits", defaults.max_commits),
        include_commits=scan_raw.get("include_commits", defaults.include_commits),
        ignore_patterns=scan_raw.get("ignore_patterns", defaults.ignore_patterns),
        catalogs=scan_raw.get("catalogs", []),
    )

    pool_raw = raw.get("pool", {})
    pool = PoolSettings(
        max_concurrency=pool_raw.get("max_concurrency", 4),
        timeout_seconds=pool_raw.get("timeout_seconds"),
    )

    store_raw = raw.get("store", {})
    store = StoreSettings(
        path=store_raw.get("path", ".unslop/report.json"),
    )

    remediation_raw = raw.get("remediation", {})
    remediation = RemediationSettings(
        require_clean_tree=remediation_raw.get("require_clean_tree", True),
        rollback_strategy=remediation_raw.get("rollback_strategy", "snapshot"),
    )

    github_raw = raw.get("github", {})
    github = GitHubSettings(
        token=github_raw.get("token") or os.environ.get("GITHUB_TOKEN", ""),
        base_url=github_raw.get("base_url"),
    )

    return Config(
        scan=scan,
        pool=pool,
        store=store,
        remediation=remediation,
        github=github,
    )


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of errors.

    Args:
        config: Configuration to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if not 1 <= config.pool.max_concurrency <= MAX_CONCURRENCY_CAP:
        errors.append(
            f"pool.max_concurrency must be between 1 and {MAX_CONCURRENCY_CAP}, "
            f"got {config.pool.max_concurrency}"
        )

    if config.pool.timeout_seconds is not None and config.pool.timeout_seconds <= 0:
        errors.append(f"pool.timeout_seconds must be positive, got {config.pool.timeout_seconds}")

    if config.remediation.rollback_strategy not in ROLLBACK_STRATEGIES:
        errors.append(
            f"remediation.rollback_strategy must be one of {', '.join(ROLLBACK_STRATEGIES)}, "
            f"got {config.remediation.rollback_strategy!r}"
        )

    if config.scan.max_commits < 0:
        errors.append(f"scan.max_commits must be >= 0, got {config.scan.max_commits}")

    if not config.store.path:
        errors.append("store.path must not be empty")

    for catalog in config.scan.catalogs:
        if not Path(catalog).exists():
            errors.append(f"Catalog file not found: {catalog}")

    return errors


def parse_categories(names: tuple[str, ...] | list[str]) -> set[Category]:
    """Turn category names from the command line into categories.

    Raises:
        ValueError: If a name is not a known category
    """
    categories = set()
    for name in names:
        try:
            categories.add(Category(name.lower().replace("-", "_")))
        except ValueError:
            known = ", ".join(c.value for c in Category)
            raise ValueError(f"Unknown category {name!r} (known: {known})") from None
    return categories
