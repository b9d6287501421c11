# SPDX-License-Identifier: AGPL-3.0-only
from pathlib import Path
from typing import Dict, Optional, Any
try:
    import tomllib
except ImportError:
    import tomli as tomllib

from .check import RULE_ID
from .options import RoleCheckOptions

CONFIG_FILENAME = "ariarole.toml"

# Default configuration structure
DEFAULT_CONFIG = {
    "rules": {
        RULE_ID: {
            "allowImplicit": True,
            "ignoredTags": [],
        },
    },
    "report": {
        "mode": "error",
        # "output": "reports/aria-allowed-role.json",
    },
}

class Config:
    def __init__(self, data: Dict[str, Any], path: Optional[Path] = None):
        self.data = data
        self.path = path
        self.root = path.parent if path is not None else Path.cwd()

    @classmethod
    def default(cls) -> "Config":
        return cls({"rules": {RULE_ID: dict(DEFAULT_CONFIG["rules"][RULE_ID])}, "report": dict(DEFAULT_CONFIG["report"])})

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """Load configuration from ariarole.toml."""
        if path is None:
            path = Path.cwd() / CONFIG_FILENAME
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"No {CONFIG_FILENAME} found at {path}.")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Failed to parse {path}: {e}") from e

        return cls(data, path)

    @property
    def rules(self) -> Dict[str, Any]:
        return self.data.get("rules", {})

    @property
    def report(self) -> Dict[str, Any]:
        return self.data.get("report", {})

    def resolve_path(self, relative_path: str) -> Path:
        return self.root / relative_path

    def rule_options(self) -> RoleCheckOptions:
        return RoleCheckOptions.from_mapping(self.rules.get(RULE_ID, {}))

    def get_mode(self) -> str:
        return str(self.report.get("mode", "error"))

    def get_output_path(self) -> Optional[Path]:
        out = self.report.get("output")
        return self.resolve_path(out) if out else None
