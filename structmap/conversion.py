"""Field-by-field conversion between DTOs and domain models.

Both sides of a conversion must declare the same fields with the same types;
the check runs when the decorator is applied, so a mismatched pair never
produces a usable converter.
"""

import logging
from typing import Any, Callable, Tuple

from .descriptors import ConversionPair, Direction, build_instance, cache_descriptor, describe
from .errors import NotMappable

logger = logging.getLogger(__name__)


# --- Marker Classes ---
class DTOMappable:
    """Marker for domain models that a DTO can be converted into."""

    pass


class DomainMappable:
    """Marker for DTOs that a domain model can be converted into."""

    pass


class ModelConverter:
    """Pure copy functions between two structurally identical classes."""

    def __init__(
        self,
        source_cls: type,
        target_cls: type,
        direction: Direction = Direction.TO_DOMAIN,
    ) -> None:
        self.source_cls = source_cls
        self.target_cls = target_cls
        self.pair = ConversionPair(
            describe(source_cls, cache=False), describe(target_cls, cache=False), direction
        )
        self._names: Tuple[str, ...] = self.pair.source.field_names
        cache_descriptor(source_cls, self.pair.source)
        cache_descriptor(target_cls, self.pair.target)
        logger.debug(
            "Generated %s converter %s <-> %s over %d fields",
            direction.value,
            source_cls.__name__,
            target_cls.__name__,
            len(self._names),
        )

    @property
    def direction(self) -> Direction:
        return self.pair.direction

    def _copy(self, obj: Any, expected: type, produce: type) -> Any:
        descriptor = self.pair.target if produce is self.target_cls else self.pair.source
        if not isinstance(obj, expected):
            raise TypeError(
                f"Expected {expected.__name__} instance, got {type(obj).__name__}"
            )
        return build_instance(
            produce, descriptor, {name: getattr(obj, name) for name in self._names}
        )

    def to_target(self, source: Any) -> Any:
        """Copy a source instance into a new target instance."""
        return self._copy(source, self.source_cls, self.target_cls)

    def to_source(self, target: Any) -> Any:
        """Copy a target instance back into a new source instance."""
        return self._copy(target, self.target_cls, self.source_cls)

    def __repr__(self) -> str:
        return (
            f"ModelConverter({self.source_cls.__name__} -> "
            f"{self.target_cls.__name__}, {self.direction.name})"
        )


def _require_marker(target: Any, marker: type, decorator_name: str) -> None:
    if not (isinstance(target, type) and issubclass(target, marker)):
        name = getattr(target, "__name__", repr(target))
        raise NotMappable(
            f"{decorator_name} target {name} must subclass {marker.__name__}"
        )


def convert_to_domain_model(target: type) -> Callable[[type], type]:
    """Class decorator adding ``to_model()`` and ``from_model()`` to a DTO.

    ``target`` must subclass ``DTOMappable`` and declare exactly the same
    fields and types as the decorated class.
    """
    _require_marker(target, DTOMappable, "convert_to_domain_model")

    def decorator(cls: type) -> type:
        converter = ModelConverter(cls, target, Direction.TO_DOMAIN)
        cls.__domain_converter__ = converter

        def to_model(self: Any) -> Any:
            return converter.to_target(self)

        def from_model(klass: type, model: Any) -> Any:
            return converter.to_source(model)

        cls.to_model = to_model
        cls.from_model = classmethod(from_model)
        return cls

    return decorator


def convert_to_dto_model(target: type) -> Callable[[type], type]:
    """Class decorator adding ``to_dto()`` and ``from_dto()`` to a domain model.

    ``target`` must subclass ``DomainMappable`` and declare exactly the same
    fields and types as the decorated class.
    """
    _require_marker(target, DomainMappable, "convert_to_dto_model")

    def decorator(cls: type) -> type:
        converter = ModelConverter(cls, target, Direction.TO_DTO)
        cls.__dto_converter__ = converter

        def to_dto(self: Any) -> Any:
            return converter.to_target(self)

        def from_dto(klass: type, dto: Any) -> Any:
            return converter.to_source(dto)

        cls.to_dto = to_dto
        cls.from_dto = classmethod(from_dto)
        return cls

    return decorator
