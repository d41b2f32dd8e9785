"""Training loop, orchestration and presets."""

from . import losses, pipelines, session, trainer

__all__ = ["losses", "pipelines", "session", "trainer"]
