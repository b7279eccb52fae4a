"""
Configuration Management Module
Handles loading of the report configuration, credentials and repository identity
"""

import os
import copy
import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from dotenv import load_dotenv

from ..tools.pivot import PivotSpec

SHEET_CODE_SCANNING = "code-scanning-issues"
SHEET_DEPENDENCIES = "dependencies-list"
SHEET_DEPENDENCIES_PIVOT = "dependencies-Pivot"
SHEET_CODE_SCANNING_PIVOT = "code-scanning-Pivot"


@dataclass
class RepositoryIdentity:
    """Repository the report is generated for"""
    owner: str
    name: str
    source: str = "event"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass
class ReportConfig:
    """Report generation configuration"""
    output_path: str = "alerts.xlsx"
    api_url: str = "https://api.github.com"
    graphql_url: str = "https://api.github.com/graphql"
    per_page: int = 100
    timeout: float = 60
    pivots: List[PivotSpec] = field(default_factory=list)


def parse_repository(value: str, source: str) -> RepositoryIdentity:
    """Split an "owner/name" string into a repository identity"""
    owner, _, name = (value or "").strip().partition("/")
    if not owner or not name or "/" in name:
        raise ValueError(f"Repository must be given as owner/name, got: {value!r}")
    return RepositoryIdentity(owner=owner, name=name, source=source)


class ConfigManager:
    """Manages configuration loading, validation, and access"""

    def __init__(
        self,
        config_path: str = "config.yaml",
        env_path: str = ".env",
        overrides: Optional[Dict[str, Any]] = None,
    ):
        """Initialize configuration manager"""
        self.config_path = Path(config_path)
        self.env_path = Path(env_path)
        self.config: Dict[str, Any] = {}
        self._load_environment()
        self._load_config()
        for key, value in (overrides or {}).items():
            if value is not None:
                self.set(key, value)
        self._validate_config()

    def _load_environment(self):
        """Load environment variables from .env file"""
        if self.env_path.exists():
            load_dotenv(self.env_path)

    def _load_config(self):
        """Load configuration from YAML file, falling back to defaults"""
        self.config = self._get_default_config()
        if not self.config_path.exists():
            return

        with open(self.config_path, "r", encoding="utf-8") as file:
            loaded = yaml.safe_load(file) or {}

        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration in {self.config_path} must be a mapping")
        self._merge(self.config, loaded)

    def _merge(self, base: Dict[str, Any], update: Dict[str, Any]):
        for key, value in update.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                self._merge(base[key], value)
            else:
                base[key] = value

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration"""
        return {
            "github": {
                "api_url": "https://api.github.com",
                "graphql_url": "https://api.github.com/graphql",
                "per_page": 100,
                "timeout": 60,
            },
            "report": {
                "output_path": "alerts.xlsx",
                "pivots": [
                    {
                        "sheet_name": SHEET_DEPENDENCIES_PIVOT,
                        "source": SHEET_DEPENDENCIES,
                        "row_keys": ["manifest"],
                        "col_keys": ["licenseInfo"],
                        "value_key": "packageName",
                        "aggregator": "count",
                        "include_empty_keys": True,
                    },
                    {
                        "sheet_name": SHEET_CODE_SCANNING_PIVOT,
                        "source": SHEET_CODE_SCANNING,
                        "row_keys": ["rule"],
                        "col_keys": ["severity"],
                        "value_key": "htmlUrl",
                        "aggregator": "count",
                        "include_empty_keys": False,
                    },
                ],
            },
        }

    def _validate_config(self):
        """Validate configuration values"""
        report = self.config.get("report")
        if not isinstance(report, dict):
            raise ValueError("Report configuration must be a dictionary")

        pivots = report.get("pivots")
        if not isinstance(pivots, list):
            raise ValueError("report.pivots must be a list")

        sources = {SHEET_CODE_SCANNING, SHEET_DEPENDENCIES}
        for pivot in pivots:
            missing = [
                key
                for key in ("sheet_name", "source", "row_keys", "col_keys", "value_key")
                if not pivot.get(key)
            ]
            if missing:
                raise ValueError(f"Pivot definition is missing: {', '.join(missing)}")
            if pivot["source"] not in sources:
                raise ValueError(
                    f"Pivot source must be one of {sorted(sources)}, got: {pivot['source']}"
                )

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)"""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """Set configuration value by key (supports dot notation)"""
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def get_report_config(self) -> ReportConfig:
        """Get report generation configuration"""
        github = self.get('github', {})
        report = self.get('report', {})
        return ReportConfig(
            output_path=report.get('output_path', 'alerts.xlsx'),
            api_url=github.get('api_url', 'https://api.github.com'),
            graphql_url=github.get('graphql_url', 'https://api.github.com/graphql'),
            per_page=int(github.get('per_page', 100)),
            timeout=float(github.get('timeout', 60)),
            pivots=[
                PivotSpec(
                    sheet_name=pivot['sheet_name'],
                    source=pivot['source'],
                    row_keys=list(pivot['row_keys']),
                    col_keys=list(pivot['col_keys']),
                    value_key=pivot['value_key'],
                    aggregator=pivot.get('aggregator', 'count'),
                    include_empty_keys=bool(pivot.get('include_empty_keys', False)),
                )
                for pivot in report.get('pivots', [])
            ],
        )

    def get_token(self) -> str:
        """Get the GitHub access token from the action input, environment or config"""
        for token in (
            os.getenv('INPUT_TOKEN'),
            os.getenv('GITHUB_TOKEN'),
            self.get('github.token'),
        ):
            if token:
                return token
        raise ValueError("A GitHub token is required: set INPUT_TOKEN or GITHUB_TOKEN")

    def _read_event_repository(self) -> Optional[RepositoryIdentity]:
        """Read the repository from the GitHub Actions event payload, if any"""
        event_path = os.getenv('GITHUB_EVENT_PATH')
        if not event_path or not Path(event_path).exists():
            return None

        with open(event_path, 'r', encoding='utf-8') as file:
            payload = json.load(file)

        repository = payload.get('repository') or {}
        owner = (repository.get('owner') or {}).get('login')
        name = repository.get('name')
        if not owner or not name:
            return None
        return RepositoryIdentity(owner=owner, name=name, source="event")

    def resolve_repository(self) -> RepositoryIdentity:
        """
        Resolve the repository to report on

        An explicit repository setting wins; otherwise the Actions event
        payload is used, then the GITHUB_REPOSITORY variable (source "env").
        """
        explicit = self.get('repository')
        if explicit:
            return parse_repository(explicit, source="config")

        identity = self._read_event_repository()
        if identity:
            return identity

        fallback = os.getenv('GITHUB_REPOSITORY')
        if not fallback:
            raise ValueError(
                "No repository found in the event context and GITHUB_REPOSITORY is not set"
            )
        return parse_repository(fallback, source="env")

    def export_config(self, format: str = "yaml") -> str:
        """Export configuration in specified format"""
        exported = copy.deepcopy(self.config)
        if exported.get('github', {}).get('token'):
            exported['github']['token'] = '***'

        if format.lower() == "json":
            return json.dumps(exported, indent=2)
        elif format.lower() == "yaml":
            return yaml.dump(exported, default_flow_style=False, indent=2)
        else:
            raise ValueError(f"Unsupported format: {format}")
