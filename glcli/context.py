"""Objects shared by all commands of one CLI invocation."""

from dataclasses import dataclass, field

import click

from .lifecycle import LifecycleController
from .settings import Settings
from .system import HostSystem


@dataclass
class AppContext:
    """Settings and host capabilities resolved once at startup."""

    settings: Settings
    system: HostSystem = field(default_factory=HostSystem)

    @classmethod
    def from_environ(cls) -> "AppContext":
        """Build the context from the process environment."""
        settings = Settings.from_environ()
        return cls(settings=settings, system=HostSystem(debug=settings.debug))

    @property
    def lifecycle(self) -> LifecycleController:
        """Lifecycle operations bound to this context."""
        return LifecycleController(self.settings, self.system)


def get_app(ctx: click.Context) -> AppContext:
    """Return the AppContext stored on the root click context."""
    app = ctx.find_object(AppContext)
    if app is None:
        app = AppContext.from_environ()
        ctx.find_root().obj = app
    return app
