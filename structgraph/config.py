from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="STRUCTGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Identity Resolution Configuration
    member_id_prefix: str = Field(default="node_")
    global_prefix: str = Field(default="global::")
    class_name_prefix: str = Field(default="Class:")
    system_namespaces: str = Field(default="UnityEngine,UnityEditor,System")
    structural_entry_points: str = Field(
        default=(
            "UnityEngine.Object.Instantiate,"
            "UnityEngine.Object.Destroy,"
            "UnityEngine.SceneManagement.SceneManager.LoadScene,"
            "UnityEngine.Resources.Load,"
            "UnityEngine.GameObject.Find"
        )
    )
    excluded_namespaces: str = Field(default="ProjectStructureVisualizer")
    suffix_match_policy: str = Field(default="first")

    # Interaction Configuration
    double_click_interval: float = Field(default=0.3)
    dim_opacity: float = Field(default=0.15)
    zoom_step: float = Field(default=1.15)
    min_zoom: float = Field(default=0.05)
    max_zoom: float = Field(default=20.0)

    # Layout Configuration
    x_external: float = Field(default=-400.0)
    x_scene: float = Field(default=0.0)
    y_start: float = Field(default=0.0)
    external_y_gap: float = Field(default=100.0)
    grid_spacing: float = Field(default=250.0)
    scene_offset_y: float = Field(default=200.0)
    component_offset_y: float = Field(default=70.0)
    circle_radius: float = Field(default=120.0)
    radius_step: float = Field(default=20.0)
    constant_offset_y: float = Field(default=100.0)
    cluster_gap: float = Field(default=50.0)
    child_offset_y: float = Field(default=100.0)
    scene_gap: float = Field(default=200.0)

    # API Configuration
    api_host: str = Field(default="localhost")
    api_port: int = Field(default=8000)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_file: str = Field(default="logs/app.log")

    @staticmethod
    def _split(value: str) -> List[str]:
        return [item.strip() for item in value.split(",") if item.strip()]

    @property
    def system_namespaces_list(self) -> List[str]:
        """Get system namespaces as a list."""
        return self._split(self.system_namespaces)

    @property
    def structural_entry_points_list(self) -> List[str]:
        """Get structurally significant call targets as a list."""
        return self._split(self.structural_entry_points)

    @property
    def excluded_namespaces_list(self) -> List[str]:
        """Get namespaces whose classes never enter the code band."""
        return self._split(self.excluded_namespaces)

    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        return Path(self.log_file).parent

    def ensure_directories(self):
        """Ensure necessary directories exist."""
        if self.log_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)


settings = Settings()
settings.ensure_directories()
