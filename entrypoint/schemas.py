"""
Slim Pydantic schemas for startup reports, health and image tags.
"""
from typing import Literal, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field, computed_field


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


# === Startup Schemas ===

StepStatus = Literal["ok", "failed", "skipped"]


class StepResult(BaseModel):
    """Outcome of a single startup step."""
    name: str
    status: StepStatus
    detail: Optional[str] = None


class StartupReport(BaseModel):
    """Ordered results of the startup sequence."""
    steps: list[StepResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utc_now)
    finished_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        """True when no step failed, best-effort ones included."""
        return all(step.status != "failed" for step in self.steps)

    def step(self, name: str) -> Optional[StepResult]:
        for result in self.steps:
            if result.name == name:
                return result
        return None


# === Image Schemas ===

class ImageTags(BaseModel):
    """Tags to apply to a built container image."""
    registry: Optional[str] = None
    repository: str = Field(min_length=1)
    tags: list[str] = Field(min_length=1)

    @computed_field
    @property
    def references(self) -> list[str]:
        """Fully qualified image references, primary tag first."""
        base = f"{self.registry}/{self.repository}" if self.registry else self.repository
        return [f"{base}:{tag}" for tag in self.tags]

    @property
    def primary(self) -> str:
        return self.tags[0]


# === Health Schemas ===

class HealthStatus(BaseModel):
    """Database health snapshot."""
    status: Literal["healthy", "unhealthy"]
    server_version: Optional[str] = None
    applied_migrations: Optional[int] = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
