"""
Immutable decoder and encoder settings.

Defaults that hosts commonly tune are read from the environment once, at
import time.
"""

import logging
import os
from dataclasses import dataclass
from dataclasses import field

from ._allocator import Allocator
from ._allocator import default_allocator
from ._container import DEFAULT_POLICY
from ._container import GrowthPolicy
from ._errors import ErrorHandler
from ._errors import JSONDecodeError

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default
    if value < 1:
        logger.warning("Ignoring non-positive %s=%r", name, raw)
        return default
    return value


DEFAULT_MAX_DEPTH = _env_int("JSONTREE_MAX_DEPTH", 256)
STRING_POLICY = GrowthPolicy(initial_capacity=16)
OUTPUT_POLICY = GrowthPolicy(initial_capacity=256)


def _validate_common(
    max_depth: int, allocator: Allocator | None, policies: list[GrowthPolicy]
) -> None:
    if not isinstance(max_depth, int) or isinstance(max_depth, bool):
        raise TypeError("max_depth must be an integer")
    if max_depth < 1:
        raise ValueError("max_depth must be at least 1")
    if allocator is not None and not isinstance(allocator, Allocator):
        raise TypeError("allocator must implement allocate/reallocate/release")
    for policy in policies:
        if not isinstance(policy, GrowthPolicy):
            raise TypeError("policy must be a GrowthPolicy")


@dataclass(frozen=True)
class DecodeConfig:
    """
    Configures decoding with immutable settings.

    Centralized configuration for nesting limits, the allocator and growth
    policies used for the produced tree, and the error sink.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    allocator: Allocator | None = None
    policy: GrowthPolicy = DEFAULT_POLICY
    string_policy: GrowthPolicy = STRING_POLICY
    error_handler: ErrorHandler = field(default=None, compare=False)

    def __post_init__(self) -> None:
        _validate_common(
            self.max_depth, self.allocator, [self.policy, self.string_policy]
        )
        if self.error_handler is not None and not callable(self.error_handler):
            raise TypeError("error_handler must be callable")

    def resolved_allocator(self) -> Allocator:
        return self.allocator if self.allocator is not None else default_allocator()

    def report(self, error: JSONDecodeError) -> None:
        """Routes a decode failure to the configured sink."""
        if self.error_handler is not None:
            self.error_handler(error)
        else:
            logger.debug("decode failed (%s): %s", error.kind.value, error)


@dataclass(frozen=True)
class EncodeConfig:
    """
    Configures encoding with immutable settings.

    Nesting limit plus the allocator and growth policy of the output buffer.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    allocator: Allocator | None = None
    policy: GrowthPolicy = OUTPUT_POLICY

    def __post_init__(self) -> None:
        _validate_common(self.max_depth, self.allocator, [self.policy])

    def resolved_allocator(self) -> Allocator:
        return self.allocator if self.allocator is not None else default_allocator()


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "OUTPUT_POLICY",
    "STRING_POLICY",
    "DecodeConfig",
    "EncodeConfig",
]
