"""Bootstrap helpers for planner sessions."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv

from acadplan.core.clock import Clock, SystemClock
from acadplan.core.config import PlannerConfig, load_planner_config
from acadplan.core.errors import ConfigurationError
from acadplan.core.provenance import ActivityLogger
from plan_store.loader import hydrate_store, load_dataset
from plan_store.store import InMemoryStore

from .context import PlannerContext
from .service import PlannerService

DEFAULT_CONFIG_PATH = Path("config/planner.yaml")
CONFIG_ENV = "ACADPLAN_CONFIG"
DATASET_ENV = "ACADPLAN_DATASET"
LOGGER = logging.getLogger(__name__)


def _capture_env(keys: tuple[str, ...]) -> Dict[str, str]:
    snapshot: Dict[str, str] = {}
    for key in keys:
        value = os.getenv(key)
        if value is not None:
            snapshot[key] = value
    return snapshot


def _resolve_config(config_path: Path | None, repo_root: Path) -> Path | None:
    if config_path is not None:
        return config_path.expanduser().resolve()
    env_override = os.getenv(CONFIG_ENV)
    if env_override:
        return Path(env_override).expanduser().resolve()
    default = repo_root / DEFAULT_CONFIG_PATH
    return default if default.exists() else None


def bootstrap_planner(
    config_path: Path | None = None,
    *,
    repo_root: Path | None = None,
    dataset_path: Path | None = None,
    clock: Clock | None = None,
    load_data: bool = True,
) -> PlannerContext:
    """
    Load configuration and environment, hydrate the store and build the service.

    Parameters
    ----------
    config_path:
        Planner YAML. Falls back to ``$ACADPLAN_CONFIG`` then
        ``config/planner.yaml`` under ``repo_root``; built-in defaults apply
        when none exists.
    repo_root:
        Root used for ``.env`` and the default config. Defaults to ``Path.cwd()``.
    dataset_path:
        Dataset to hydrate the store from. Overrides ``$ACADPLAN_DATASET`` and
        ``store.dataset_path`` in the config.
    clock:
        Time source for every operation; ``SystemClock`` by default.
    load_data:
        When false the store starts empty even if a dataset is configured.
    """
    repo_root = (repo_root or Path.cwd()).resolve()
    load_dotenv(repo_root / ".env")

    resolved_config = _resolve_config(config_path, repo_root)
    if resolved_config is None:
        config = PlannerConfig()
    else:
        if not resolved_config.exists():
            raise ConfigurationError(f"Config file not found: {resolved_config}", error_code="missing_config")
        try:
            config = load_planner_config(resolved_config)
        except ValueError as exc:
            raise ConfigurationError(str(exc), error_code="invalid_config") from exc

    env_dataset = os.getenv(DATASET_ENV)
    if dataset_path is None and env_dataset:
        dataset_path = Path(env_dataset)
    if dataset_path is not None:
        store_cfg = config.store.model_copy(update={"dataset_path": dataset_path.expanduser().resolve()})
        config = config.model_copy(update={"store": store_cfg})

    store = InMemoryStore()
    dataset = None
    if load_data and config.store.dataset_path is not None:
        dataset = load_dataset(config.store.dataset_path)
        if dataset.issues:
            LOGGER.warning("Dataset %s has %d entries that failed to load", dataset.source, len(dataset.issues))
        hydrate_store(dataset, store)

    activity = ActivityLogger(config.store.activity_log) if config.store.activity_log else None
    clock = clock or SystemClock()
    service = PlannerService(store, clock, config, activity_log=activity)
    LOGGER.debug("Planner bootstrapped with config %s and store %s", resolved_config, store.counts())

    return PlannerContext(
        config=config,
        config_path=resolved_config,
        store=store,
        clock=clock,
        service=service,
        dataset=dataset,
        activity=activity,
        env=_capture_env((CONFIG_ENV, DATASET_ENV)),
    )


__all__ = ["DEFAULT_CONFIG_PATH", "bootstrap_planner"]
