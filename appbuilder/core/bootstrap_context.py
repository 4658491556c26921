from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


HARNESS_ENV_VARS = ("APPBUILDER_HARNESS_ACTIVE", "HARNESS_ACTIVE")


def _truthy(v: Optional[str]) -> bool:
    return isinstance(v, str) and v.strip().lower() not in ("", "0", "false", "no", "off")


@dataclass(frozen=True)
class BootstrapContext:
    """
    Who is calling bootstrap().

    Setup only runs for the program entry point or under a test harness;
    any other caller gets a configured but not started class so it can keep
    composing. Compute this once at the real entry point and pass it down.
    """

    entry_point: bool = False
    harness_active: bool = False

    @property
    def should_setup(self) -> bool:
        return self.entry_point or self.harness_active

    @classmethod
    def from_env(cls, *, entry_point: bool = False, environ: Optional[Mapping[str, str]] = None) -> "BootstrapContext":
        env = os.environ if environ is None else environ
        harness = any(_truthy(env.get(k)) for k in HARNESS_ENV_VARS)
        return cls(entry_point=entry_point, harness_active=harness)
