from .errors import AppBuilderError, ConfigurationError, DependencyLoadError, FrameworkInitError, NotBootstrappedError
from .bootstrap_context import BootstrapContext
from .lazy import OverrideChain, override

__all__ = [
  "AppBuilderError",
  "ConfigurationError",
  "DependencyLoadError",
  "FrameworkInitError",
  "NotBootstrappedError",
  "BootstrapContext",
  "OverrideChain",
  "override",
]
