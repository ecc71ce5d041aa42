"""Construct-then-publish holder for the module of a loaded binary."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from ..config import ParserConfig
from ..utils.byteops import Buffer
from .model import Module
from .parser import parse_module

LOGGER = logging.getLogger(__name__)

__all__ = ["ModuleStore"]


class ModuleStore:
    """Hold the current :class:`Module` for a host integration.

    Modules are immutable, so readers simply take the current reference and
    keep using it even if a re-parse publishes a replacement.  Writers are
    serialised; a failed parse leaves the previously published module intact.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._module: Optional[Module] = None
        self._generation = 0

    @property
    def module(self) -> Optional[Module]:
        return self._module

    @property
    def generation(self) -> int:
        """Number of successful publishes so far."""

        return self._generation

    def require(self) -> Module:
        module = self._module
        if module is None:
            raise LookupError("no module has been published")
        return module

    def publish(self, module: Module) -> Module:
        with self._lock:
            self._module = module
            self._generation += 1
            LOGGER.debug("Published module generation %d", self._generation)
        return module

    def load(self, buffer: Buffer, *, config: Optional[ParserConfig] = None) -> Module:
        """Parse ``buffer`` and publish the result atomically."""

        module = parse_module(buffer, config=config)
        return self.publish(module)

    def clear(self) -> None:
        with self._lock:
            self._module = None
