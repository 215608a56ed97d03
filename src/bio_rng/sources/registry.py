"""Registry of sample source implementations.

Built-in sources register themselves at import time through
``@register_sample_source``. Sources shipped by other packages (for example
a client for a live MEA rig) are discovered lazily through the
``bio_rng.sample_sources`` entry-point group the first time a name cannot
be resolved locally.
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from bio_rng.config import BioRNGConfig
    from bio_rng.sources.base import SampleSource

logger = logging.getLogger("bio_rng")

_ENTRY_POINT_GROUP = "bio_rng.sample_sources"


class SampleSourceRegistry:
    """Maps ``source_type`` names to SampleSource classes.

    Lookup order:

    1. Classes registered with ``@register_sample_source``
    2. Entry points in ``bio_rng.sample_sources`` (scanned once, on demand)

    Every registered class is constructed with the active ``BioRNGConfig``
    by :meth:`build`.
    """

    _registry: ClassVar[dict[str, type[SampleSource]]] = {}
    _plugins_scanned: ClassVar[bool] = False

    @classmethod
    def register(cls, name: str) -> Callable[[type[SampleSource]], type[SampleSource]]:
        """Decorator registering a source class under *name*.

        Args:
            name: Identifier used in config ``source_type``.

        Returns:
            Decorator that registers the class and returns it unchanged.

        Raises:
            ValueError: If a different class is already registered under *name*.
        """

        def decorator(source_cls: type[SampleSource]) -> type[SampleSource]:
            existing = cls._registry.get(name)
            if existing is not None and existing is not source_cls:
                raise ValueError(f"Sample source '{name}' is already registered")
            cls._registry[name] = source_cls
            return source_cls

        return decorator

    @classmethod
    def get(cls, name: str) -> type[SampleSource]:
        """Return the source class registered under *name*.

        Raises:
            KeyError: If *name* is unknown after scanning entry points.
        """
        if name not in cls._registry and not cls._plugins_scanned:
            cls._scan_plugins()
        try:
            return cls._registry[name]
        except KeyError:
            available = ", ".join(sorted(cls._registry)) or "(none)"
            raise KeyError(f"Unknown sample source '{name}'. Available: {available}") from None

    @classmethod
    def build(cls, config: BioRNGConfig) -> SampleSource:
        """Instantiate the source named by ``config.source_type``.

        Args:
            config: Active configuration, passed to the source constructor.

        Returns:
            A ready-to-use SampleSource.
        """
        source_cls = cls.get(config.source_type)
        return source_cls(config)  # type: ignore[call-arg]

    @classmethod
    def list_available(cls) -> list[str]:
        """Return sorted names of all known sources, plugins included."""
        if not cls._plugins_scanned:
            cls._scan_plugins()
        return sorted(cls._registry)

    @classmethod
    def _scan_plugins(cls) -> None:
        """Register classes advertised in the entry-point group.

        A broken plugin is logged and skipped; decorator registrations
        always win over an entry point with the same name.
        """
        cls._plugins_scanned = True
        try:
            entry_points = importlib.metadata.entry_points(group=_ENTRY_POINT_GROUP)
        except Exception:  # Intentional: broken metadata must not break lookup
            logger.warning("Could not read entry points for %s", _ENTRY_POINT_GROUP, exc_info=True)
            return

        for ep in entry_points:
            if ep.name in cls._registry:
                continue
            try:
                cls._registry[ep.name] = ep.load()
            except Exception:  # Intentional: one bad plugin must not hide the others
                logger.warning("Skipping sample source plugin %r (%s)", ep.name, ep.value, exc_info=True)
            else:
                logger.debug("Registered sample source plugin %r", ep.name)

    @classmethod
    def _reset(cls) -> None:
        """Forget all registrations. **Test-only**."""
        cls._registry.clear()
        cls._plugins_scanned = False


register_sample_source = SampleSourceRegistry.register
