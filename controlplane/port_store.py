"""Port configuration storage, one YAML file per cluster."""

from pathlib import Path
from typing import Optional

import yaml

from controlplane.models import PortsConfig
from controlplane.settings import settings


class PortStore:
    """Store cluster port configurations as YAML files."""

    def __init__(self, config_dir: Optional[str] = None):
        self.config_dir = Path(config_dir or settings.config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def _get_path(self, infra_id: str) -> Path:
        return self.config_dir / f"{infra_id}.yaml"

    def save(self, infra_id: str, config: PortsConfig) -> None:
        """Save port configuration."""
        path = self._get_path(infra_id)
        data = {
            "infra_id": infra_id,
            "config": config.model_dump(),
        }
        with open(path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def get(self, infra_id: str) -> Optional[PortsConfig]:
        """Get port configuration."""
        path = self._get_path(infra_id)
        if not path.exists():
            return None

        with open(path) as f:
            data = yaml.safe_load(f) or {}
            return PortsConfig(**data.get("config", {}))

    def delete(self, infra_id: str) -> bool:
        """Delete port configuration."""
        path = self._get_path(infra_id)
        if not path.exists():
            return False
        path.unlink()
        return True


# Global instance
port_store = PortStore()
