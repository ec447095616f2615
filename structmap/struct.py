import inspect
import types
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Union,
    cast,
    get_args,
    get_origin,
    get_type_hints,
)

from .descriptors import DESCRIPTOR_ATTR, MISSING, build_descriptor, is_classvar, split_annotated
from .errors import DefinitionError


# --- Base Marker Class ---
class immutable:
    """Marker base class to make structs immutable by default."""

    pass


# --- Metaclass ---
class StructMeta(type):
    """Metaclass for Struct that collects fields, strips Annotated metadata and
    builds the struct descriptor once, at class creation."""

    def __new__(mcls, name: str, bases: tuple, namespace: dict) -> Any:
        # --- Frozen Flag ---
        if any(base is immutable for base in bases):
            namespace.setdefault("frozen", True)

        cls = super().__new__(mcls, name, bases, namespace)
        cls_any = cast(Any, cls)

        # --- Field and Default Collection ---
        fields: List[str] = []
        defaults: Dict[str, Any] = {}
        for base in reversed(cls.__mro__[1:]):
            for f in base.__dict__.get("_fields", ()):
                if f not in fields:
                    fields.append(f)
            defaults.update(base.__dict__.get("_defaults", {}))

        own = inspect.get_annotations(cls)
        for k, hint in own.items():
            if k.startswith("_") or is_classvar(hint):
                continue
            if k == "frozen":
                raise DefinitionError(
                    f"{name}: 'frozen' is reserved for the freeze flag; "
                    f"declare it as e.g. is_frozen: Annotated[bool, Key(\"frozen\")]"
                )
            if k not in fields:
                fields.append(k)
            if k in cls.__dict__:
                defaults[k] = cls.__dict__[k]

        cls_any._fields = fields
        cls_any._defaults = defaults

        # Use include_extras=True to handle Annotated types for metadata
        hints = get_type_hints(cls, include_extras=True) if fields else {}
        cls_any._types = {}
        cls_any._field_metadata = {}
        for field_name in fields:
            field_type, metadata = split_annotated(hints.get(field_name, Any))
            cls_any._types[field_name] = field_type
            if metadata:
                cls_any._field_metadata[field_name] = metadata

        setattr(
            cls,
            DESCRIPTOR_ATTR,
            build_descriptor(
                name,
                ((f, hints.get(f, Any), defaults.get(f, MISSING)) for f in fields),
            ),
        )
        return cls


# --- Main Struct Class ---
class Struct(metaclass=StructMeta):
    frozen = False

    def __init__(self, *args: Any, frozen: Optional[bool] = None, **kwargs: Any) -> None:
        """Initialize a new struct instance."""
        total_fields = len(self._fields)

        # Check for invalid keyword arguments
        invalid_fields = [k for k in kwargs if k not in self._fields]
        if invalid_fields:
            raise TypeError(
                f"Invalid field(s) for {self.__class__.__name__}: {', '.join(invalid_fields)}. "  # noqa: E501
                f"Valid fields are: {', '.join(self._fields)}."
            )

        # Check the total number of arguments
        if len(args) + len(kwargs) > total_fields:
            raise TypeError(
                f"Too many arguments for {self.__class__.__name__}. "
                f"Expected at most {total_fields}, got {len(args) + len(kwargs)}. "  # noqa: E501
                f"Fields: {', '.join(self._fields)}."
            )

        assigned_fields: set = set()

        # Positional arguments
        for name, value in zip(self._fields, args):
            self._validate_and_set(name, value, initial_set=True)
            assigned_fields.add(name)

        # Keyword arguments
        for name, value in kwargs.items():
            if name in assigned_fields:
                raise TypeError(
                    f"Duplicate value for field '{name}' in {self.__class__.__name__}. "  # noqa: E501
                    f"Fields can only be assigned once."
                )
            self._validate_and_set(name, value, initial_set=True)
            assigned_fields.add(name)

        # Default values for any remaining fields
        for name in self._fields:
            if name not in assigned_fields:
                if name in self._defaults:
                    default = self._defaults[name]
                    value = default() if callable(default) else default
                    self._validate_and_set(name, value, initial_set=True)
                else:
                    raise TypeError(
                        f"Missing required field '{name}' for {self.__class__.__name__}. "  # noqa: E501
                        f"Fields: {', '.join(self._fields)}."
                    )

        # Set frozen status
        if frozen is None:
            frozen = self.__class__.frozen
        object.__setattr__(self, "_frozen", frozen)

    def _validate_type(self, name: str, value: Any, expected: Any) -> None:  # noqa: C901
        """Validate that value matches the expected type annotation."""
        if expected is None or expected is Any or expected is object:
            return

        origin_type = get_origin(expected)

        # Handle Union types (including Optional which is Union[T, None])
        if origin_type is Union or origin_type is types.UnionType:
            for union_type in get_args(expected):
                if union_type is type(None):
                    if value is None:
                        return
                    continue
                try:
                    self._validate_type(name, value, union_type)
                    return
                except TypeError:
                    continue
            raise TypeError(
                f"Field '{name}' expects {expected}, got {type(value).__name__}"  # noqa: E501
            )

        if origin_type is not None:
            # For generic types like list[int], dict[str, int], just check the origin
            if isinstance(origin_type, type) and not isinstance(value, origin_type):
                raise TypeError(
                    f"Field '{name}' expects {expected}, got {type(value).__name__}"
                )
            return

        if isinstance(expected, type) and not isinstance(value, expected):
            raise TypeError(
                f"Field '{name}' expects {expected}, got {type(value).__name__}"
            )

    def _validate_and_set(
        self, name: str, value: Any, initial_set: bool = False
    ) -> None:
        """Helper to centralize type checks and setting."""
        # On first creation (__init__), don't check frozen status
        if not initial_set and getattr(self, "_frozen", False):
            raise AttributeError(
                f"Cannot modify frozen '{self.__class__.__name__}' instance"
            )

        self._validate_type(name, value, self._types.get(name))
        object.__setattr__(self, name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        """Set attribute with validation and frozen check."""
        if name not in self._fields:
            raise AttributeError(
                f"'{self.__class__.__name__}' has no field '{name}'. "
                f"Valid fields are: {', '.join(self._fields)}."
            )
        self._validate_and_set(name, value)

    # --- Equality ---
    def __eq__(self, other: object) -> bool:
        """Check equality by comparing all field values."""
        if not isinstance(other, self.__class__):
            return NotImplemented
        return all(getattr(self, f) == getattr(other, f) for f in self._fields)

    # --- Hashing ---
    def __hash__(self) -> int:
        """Return hash of struct. Only available for frozen instances."""
        if not self._frozen:
            raise TypeError(f"Mutable '{self.__class__.__name__}' is unhashable")
        return hash(tuple(getattr(self, f) for f in self._fields))

    # --- String Representation ---
    def __repr__(self) -> str:
        fields_str = ", ".join(f"{f}={getattr(self, f)!r}" for f in self._fields)
        return f"{self.__class__.__name__}({fields_str})"

    # --- Metadata Access ---
    @classmethod
    def get_field_metadata(cls, field_name: str) -> tuple:
        """Get metadata for a specific field from Annotated type hints."""
        return cls._field_metadata.get(field_name, ())
