"""Property: the built-in attribute trigger for accessors.

    Dog = Class.extend({
        "init": lambda self: setattr(self, "_kind", "canine"),
        "kind": prop(),                      # readable, backed by self._kind
        "name": prop(writable=True),         # readable and writable
        "bark": prop(lambda self: "woof"),   # custom getter
    })

Options:
    readable   install a default getter when none is given (default True)
    writable   install a default setter when none is given (default False)
    property   backing attribute name (default "_" + member name)

Access that the resolved accessor pair does not allow raises
PropertyAccessError when it happens, not when the class is defined.
"""

import logging
from dataclasses import dataclass
from collections.abc import Mapping

from corazon.trigger import AttributeTrigger

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS = {"readable": True, "writable": False, "property": None}


class PropertyAccessError(AttributeError):
    pass


@dataclass(frozen=True)
class PropertyOptions:
    name: str
    readable: bool
    writable: bool
    property: str


class Accessor:
    """Data descriptor for a generated property."""

    def __init__(self, name: str, getter=None, setter=None):
        self.name = name
        self.getter = getter
        self.setter = setter

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        if self.getter is None:
            raise PropertyAccessError(f"cannot get property {self.name!r}: not readable")
        return self.getter(obj)

    def __set__(self, obj, value):
        if self.setter is None:
            detail = ", only a getter is defined" if self.getter is not None else ""
            raise PropertyAccessError(f"cannot set property {self.name!r}: not writable{detail}")
        self.setter(obj, value)

    def __repr__(self):
        return f"<Accessor {self.name} readable={self.getter is not None} writable={self.setter is not None}>"


def _accessor_arg(arg) -> bool:
    return arg is None or callable(arg)


class _Property:
    def init(self, *args, **options):
        args = list(args)
        self.getter = args.pop(0) if args and _accessor_arg(args[0]) else None
        self.setter = args.pop(0) if args and _accessor_arg(args[0]) else None
        if args and (args[0] is None or isinstance(args[0], Mapping)):
            options = {**(args.pop(0) or {}), **options}
        if args:
            raise TypeError(f"unexpected property arguments: {args!r}")
        unknown = set(options) - set(DEFAULT_OPTIONS)
        if unknown:
            raise TypeError(f"unknown property options: {', '.join(sorted(unknown))}")
        self.options = options

    def _getter(self, opts):
        """Build the default getter. Subclasses override for custom storage."""
        def getter(obj):
            return getattr(obj, opts.property)
        return getter

    def _setter(self, opts):
        """Build the default setter. Subclasses override for custom storage."""
        def setter(obj, value):
            setattr(obj, opts.property, value)
        return setter

    def invoke(self, name, reopen, details):
        settings = {**DEFAULT_OPTIONS, **self.options}
        opts = PropertyOptions(
            name=name,
            readable=settings["readable"],
            writable=settings["writable"],
            property=settings["property"] or f"_{name}",
        )
        getter, setter = self.getter, self.setter
        if getter is None and opts.readable:
            getter = self._getter(opts)
        if setter is None and opts.writable:
            setter = self._setter(opts)
        setattr(details.prototype, name, Accessor(name, getter, setter))
        logger.debug("installed %s on %r (reopen=%s)", name, details.owner, reopen)


class _PropertyClass:
    def fn(self, *args, **options):
        """Create a property of this class without going through `create`."""
        return self.create(*args, **options)


Property = AttributeTrigger.extend(_Property, statics=_PropertyClass, name="Property")

prop = Property.fn
