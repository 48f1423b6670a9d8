from __future__ import annotations

import logging
from typing import Dict, Iterator, List

from ..errors import NotFoundError
from .descriptor import AlgorithmDescriptor

logger = logging.getLogger(__name__)


class DescriptorRegistry:
    """Catalogue of algorithm descriptors keyed by algorithm name.

    Populated once during start-up and read afterwards. Registering a name
    that already exists replaces the previous descriptor (last write wins).
    Each registration swaps in a new dict, so a lookup running alongside a
    late registration sees either the old or the new mapping, never a partial
    one.
    """

    def __init__(self) -> None:
        self._descriptors: Dict[str, AlgorithmDescriptor] = {}

    def register(self, descriptor: AlgorithmDescriptor) -> AlgorithmDescriptor:
        if descriptor.name in self._descriptors:
            logger.debug(f"Replacing descriptor '{descriptor.name}'")
        snapshot = dict(self._descriptors)
        snapshot[descriptor.name] = descriptor
        self._descriptors = snapshot
        return descriptor

    def has(self, name: str) -> bool:
        return name in self._descriptors

    def get(self, name: str) -> AlgorithmDescriptor:
        try:
            return self._descriptors[name]
        except KeyError:
            raise NotFoundError(f"No descriptor registered for algorithm '{name}'") from None

    def all(self) -> List[AlgorithmDescriptor]:
        return list(self._descriptors.values())

    def names(self) -> List[str]:
        return list(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[AlgorithmDescriptor]:
        return iter(self.all())
