from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Set

from appbuilder.core.errors import ConfigurationError, DependencyLoadError

from .app_class import AppClass, merge_config


FRAMEWORK_ROOT = "Application"


def _c3_merge(seqs: List[List[str]], name: str) -> List[str]:
    out: List[str] = []
    seqs = [list(s) for s in seqs if s]
    while seqs:
        head = None
        for s in seqs:
            cand = s[0]
            if not any(cand in other[1:] for other in seqs):
                head = cand
                break
        if head is None:
            raise ConfigurationError(
                code="class.mro_conflict",
                message=f"Cannot linearize ancestors of {name}",
                data={"app_name": name, "pending": [list(s) for s in seqs]},
            )
        out.append(head)
        seqs = [s[1:] if s[0] == head else s for s in seqs]
        seqs = [s for s in seqs if s]
    return out


class ClassRegistry:
    """
    Process-wide map of class name -> AppClass descriptor.

    - holds the framework root class (no bases, no home)
    - the single source of truth for "has this application been realized"
    - remembers names whose framework activation failed
    - linearizes ancestors with C3, most-derived first
    """

    def __init__(self, root_name: str = FRAMEWORK_ROOT) -> None:
        self._root_name = root_name
        self._classes: Dict[str, AppClass] = {root_name: AppClass(name=root_name)}
        self._failed: Set[str] = set()
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @property
    def root_name(self) -> str:
        return self._root_name

    def names(self) -> List[str]:
        return sorted(self._classes.keys())

    def find(self, name: str) -> Optional[AppClass]:
        return self._classes.get(name)

    def require(self, name: str) -> AppClass:
        cls = self.find(name)
        if cls is None:
            raise DependencyLoadError(
                code="dependency.load_failed",
                message=f"Class is not loaded: {name}",
                data={"class": name},
            )
        return cls

    def lock_for(self, name: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = threading.RLock()
                self._locks[name] = lock
            return lock

    def linearize(self, name: str) -> List[str]:
        return self._linearize(name, ())

    def _linearize(self, name: str, seen: Iterable[str]) -> List[str]:
        if name in seen:
            raise ConfigurationError(
                code="class.mro_conflict",
                message=f"Inheritance cycle through {name}",
                data={"app_name": name},
            )
        cls = self.require(name)
        chain = tuple(seen) + (name,)
        parents = [self._linearize(b, chain) for b in cls.bases]
        return [name] + _c3_merge(parents + [list(cls.bases)], name)

    def is_app(self, name: str) -> bool:
        if name not in self._classes:
            return False
        return self._root_name in self.linearize(name)

    def mark_failed(self, name: str) -> None:
        self._failed.add(name)

    def has_failed(self, name: str) -> bool:
        return name in self._failed

    def is_realized(self, name: str) -> bool:
        """
        True for a recognized application class that can be handed out: it is
        activated, or it was registered as an application class directly (for
        example by hand, without a builder). Never true after a failed activation.
        """
        cls = self._classes.get(name)
        if cls is None or name in self._failed:
            return False
        if not cls.activated and cls.pending:
            return False
        return self.is_app(name)

    def restore(self, name: str, previous: Optional[AppClass]) -> None:
        """
        Put back the entry that `name` had before create(), or drop it.
        """
        if previous is None:
            self._classes.pop(name, None)
        else:
            self._classes[name] = previous

    def app_ancestors(self, name: str) -> List[str]:
        """
        Recognized application classes in linearized order, root excluded.
        """
        return [c for c in self.linearize(name) if c != self._root_name and self.is_app(c)]

    def create(
        self,
        name: str,
        *,
        version: str,
        superclasses: Optional[Iterable[str]] = None,
        home: Optional[str] = None,
        pending: bool = False,
    ) -> AppClass:
        if name == self._root_name:
            raise ConfigurationError(code="class.invalid", message="Cannot redefine the framework root class")
        bases = list(superclasses or [])
        for b in bases:
            self.require(b)

        previous = self._classes.get(name)
        cls = AppClass(name=name, version=version, bases=bases, home=home, pending=pending)
        self._classes[name] = cls
        try:
            ancestors = self.linearize(name)[1:]
        except ConfigurationError:
            self.restore(name, previous)
            raise

        # Inherit ancestor config, most foundational first so nearer classes win.
        inherited: Dict[str, object] = {}
        for anc in reversed(ancestors):
            inherited = merge_config(inherited, self._classes[anc].config)
        cls.config = inherited
        return cls
