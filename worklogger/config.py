"""Loading of the OpenProject connection settings and name mappings.

Settings live in a plain Python module (see ``config.template.py``) defining
``CONFIG``, ``PROJECT_MAPPINGS``, ``ACTIVITY_MAPPINGS`` and optionally
``OPTIONS``. The module is read once per run and turned into an immutable
:class:`Settings` value that is handed to every component.
"""

import logging
import os
import runpy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.py"

DEFAULT_ACTIVITY_MAPPINGS = {
    "Development": 3,
    "Support": 5,
    "Meeting": 14,
    "Testing": 4,
    "Specification": 2,
    "Other": 6,
    "Change Request": 15,
    "Management": 16,
}

RECURRING_WITHOUT_LINK_MODES = ("drop", "error")


@dataclass(frozen=True)
class Settings:
    base_url: str
    api_token: str
    project_mappings: Mapping[str, int]
    activity_mappings: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_ACTIVITY_MAPPINGS))
    )
    accountable_user_id: Optional[int] = None
    assignee_user_id: Optional[int] = None
    validate_against_server: bool = True
    throw_on_server_duplicates: bool = True
    recurring_without_link: str = "drop"
    page_size: int = 100
    default_status_id: int = 7
    default_type_id: int = 1
    request_timeout: float = 30.0

    def __post_init__(self):
        # Freeze mappings passed in as plain dicts.
        for name in ("project_mappings", "activity_mappings"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def project_id(self, project_name):
        """Resolve a project name to its OpenProject ID."""
        try:
            return self.project_mappings[project_name]
        except KeyError:
            raise ConfigurationError(
                f"No project mapping found for project: {project_name}"
            ) from None

    def activity_id(self, activity_name):
        """Resolve an activity name, case-insensitively, falling back to Development."""
        lookup = {name.lower(): activity_id for name, activity_id in self.activity_mappings.items()}
        fallback = lookup.get("development", 3)
        return lookup.get((activity_name or "").lower(), fallback)

    def validate(self):
        """Check the settings needed before talking to the server."""
        if not self.base_url or not self.api_token:
            raise ConfigurationError("Base URL and API token must be configured")
        if not self.project_mappings:
            raise ConfigurationError("PROJECT_MAPPINGS must contain at least one project")
        if self.recurring_without_link not in RECURRING_WITHOUT_LINK_MODES:
            raise ConfigurationError(
                f"recurring_without_link must be one of {RECURRING_WITHOUT_LINK_MODES}, "
                f"got '{self.recurring_without_link}'"
            )
        if self.page_size < 1:
            raise ConfigurationError("page_size must be a positive integer")
        return self


def settings_from_namespace(namespace, environ=None):
    """Build :class:`Settings` from the globals of a config module."""
    environ = os.environ if environ is None else environ

    config = dict(namespace.get("CONFIG") or {})
    options = dict(namespace.get("OPTIONS") or {})
    project_mappings = namespace.get("PROJECT_MAPPINGS")
    if project_mappings is None:
        raise ConfigurationError("Config is missing PROJECT_MAPPINGS")

    base_url = environ.get("OPENPROJECT_BASE_URL") or config.get("base_url", "")
    api_token = environ.get("OPENPROJECT_API_TOKEN") or config.get("api_token", "")

    known = {
        "validate_against_server",
        "throw_on_server_duplicates",
        "recurring_without_link",
        "page_size",
        "default_status_id",
        "default_type_id",
        "request_timeout",
    }
    unknown = set(options) - known
    if unknown:
        raise ConfigurationError(f"Unknown OPTIONS keys: {sorted(unknown)}")

    settings = Settings(
        base_url=(base_url or "").rstrip("/"),
        api_token=api_token or "",
        project_mappings=project_mappings,
        activity_mappings=namespace.get("ACTIVITY_MAPPINGS") or DEFAULT_ACTIVITY_MAPPINGS,
        accountable_user_id=config.get("accountable_user_id"),
        assignee_user_id=config.get("assignee_user_id"),
        **options,
    )
    return settings.validate()


def load_config(path=None, environ=None):
    """Load settings from a Python config module."""
    path = path or DEFAULT_CONFIG_PATH

    if not os.path.exists(path):
        raise ConfigurationError(
            f"Config file not found: {path}. Copy config.template.py to config.py and fill it in."
        )

    try:
        namespace = runpy.run_path(path)
    except Exception as e:
        raise ConfigurationError(f"Could not load config file {path}: {e}") from e

    settings = settings_from_namespace(namespace, environ=environ)
    logger.debug(
        "Loaded config from %s (%d projects, %d activities)",
        path,
        len(settings.project_mappings),
        len(settings.activity_mappings),
    )
    return settings
