"""Class kernel: inheritance, reopening, super calls and metaclasses.

Every class is a plain Python object that owns two Python types:

    Dog.__prototype__          the type instances are made from
    type(Dog)                  the type Dog itself is an instance of

Both are derived from the parent's corresponding type, so the instance side
and the class side form two parallel chains kept in lockstep:

    Class.__prototype__  <-  Animal.__prototype__  <-  Dog.__prototype__
    type(Class)          <-  type(Animal)          <-  type(Dog)

Member lookup is ordinary Python attribute lookup along those chains. Reopening
a class sets attributes on its types, so every existing instance and subclass
sees the change immediately.

Function members are wrapped once when installed. The wrapper records the
implementation it replaced and exposes it to the function body as
``self._super`` for the duration of the call:

    Animal = Class.extend({"speak": lambda self: "speaking"})
    Dog = Animal.extend({"speak": lambda self: self._super() + "!"})
    Dog.create().speak()   # "speaking!"

The active super frame lives in a ContextVar rather than on the receiver, so
coroutines and interleaved asyncio tasks each see their own.
"""

import contextvars
import functools
import inspect
import logging
from collections.abc import Mapping

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"

# Instance members stored unwrapped. `new` hooks are chained by `Class.new`.
RAW_MEMBERS = frozenset({"new"})

# Python's own bookkeeping in a class body used as a member bundle.
_CLASS_BODY_SKIP = frozenset({
    "__module__", "__qualname__", "__dict__", "__weakref__", "__doc__",
    "__annotations__", "__annotate__", "__annotate_func__", "__annotations_cache__",
    "__firstlineno__", "__static_attributes__",
})

_MARKER = "__super_wrapped__"

_frame: contextvars.ContextVar = contextvars.ContextVar("corazon_super", default=None)


class SuperRebindError(TypeError):
    pass


def _noop(self, *args, **kwargs):
    return None


async def _async_noop(self, *args, **kwargs):
    return None


def _generator_noop(self, *args, **kwargs):
    return
    yield


async def _async_generator_noop(self, *args, **kwargs):
    return
    yield


def _resume(frame, step, *args):
    token = _frame.set(frame)
    try:
        return step(*args)
    finally:
        _frame.reset(token)


async def _aresume(frame, step, *args):
    token = _frame.set(frame)
    try:
        return await step(*args)
    finally:
        _frame.reset(token)


def _wrap_generator(fn, target):
    # The frame is only active while the body runs, never while suspended.
    def wrapper(self, *args, **kwargs):
        frame = BoundSuper(self, target)
        gen = _resume(frame, fn, self, *args, **kwargs)
        step, arg = gen.send, None
        while True:
            try:
                value = _resume(frame, step, arg)
            except StopIteration as stop:
                return stop.value
            try:
                arg = yield value
                step = gen.send
            except GeneratorExit:
                _resume(frame, gen.close)
                raise
            except BaseException as exc:
                step, arg = gen.throw, exc
    return wrapper


def _wrap_async_generator(fn, target):
    async def wrapper(self, *args, **kwargs):
        frame = BoundSuper(self, target)
        agen = _resume(frame, fn, self, *args, **kwargs)
        step, arg = agen.asend, None
        while True:
            try:
                value = await _aresume(frame, step, arg)
            except StopAsyncIteration:
                return
            try:
                arg = yield value
                step = agen.asend
            except GeneratorExit:
                await _aresume(frame, agen.aclose)
                raise
            except BaseException as exc:
                step, arg = agen.athrow, exc
    return wrapper


class BoundSuper:
    """The overridden implementation, bound to the receiver of the active call.

    Safe to capture and call later: the binding never changes. Use
    ``unbound`` to call the implementation with a different receiver.
    """

    __slots__ = ("receiver", "unbound")

    def __init__(self, receiver, unbound):
        self.receiver = receiver
        self.unbound = unbound

    def __call__(self, *args, **kwargs):
        return self.unbound(self.receiver, *args, **kwargs)

    def apply(self, receiver, *args, **kwargs):
        if receiver is not self.receiver:
            raise SuperRebindError(
                "cannot change `self` via bound _super; "
                "call _super.unbound to use another receiver"
            )
        return self(*args, **kwargs)

    def __repr__(self):
        name = getattr(self.unbound, "__qualname__", repr(self.unbound))
        return f"<_super {name} bound to {self.receiver!r}>"


def _current_super(self):
    frame = _frame.get()
    if frame is None or frame.receiver is not self:
        raise AttributeError("_super is only available inside a method called on this object")
    return frame


def is_wrapped(fn) -> bool:
    return getattr(fn, _MARKER, False) is True


def wrap(fn, overridden=None):
    """Wrap fn so that its body can reach `overridden` through ``self._super``.

    Rewrapping a wrapper replaces its super link instead of nesting, so a
    function never carries more than one wrap layer.
    """
    if is_wrapped(fn):
        fn = fn.wrapped_function
    is_async = inspect.iscoroutinefunction(fn)
    target = overridden
    if target is None:
        if inspect.isgeneratorfunction(fn):
            target = _generator_noop
        elif inspect.isasyncgenfunction(fn):
            target = _async_generator_noop
        else:
            target = _async_noop if is_async else _noop

    if inspect.isgeneratorfunction(fn):
        wrapper = _wrap_generator(fn, target)
    elif inspect.isasyncgenfunction(fn):
        wrapper = _wrap_async_generator(fn, target)
    elif is_async:
        async def wrapper(self, *args, **kwargs):
            token = _frame.set(BoundSuper(self, target))
            try:
                return await fn(self, *args, **kwargs)
            finally:
                _frame.reset(token)
    else:
        def wrapper(self, *args, **kwargs):
            token = _frame.set(BoundSuper(self, target))
            try:
                return fn(self, *args, **kwargs)
            finally:
                _frame.reset(token)

    functools.update_wrapper(wrapper, fn)
    wrapper.wrapped_function = fn
    wrapper.super_function = overridden
    setattr(wrapper, _MARKER, True)
    return wrapper


def _overridden(prototype: type, name: str):
    current = getattr(prototype, name, None)
    return current if inspect.isfunction(current) else None


def members(bundle) -> dict:
    """Return the members a bundle defines: a mapping, or a class body."""
    if isinstance(bundle, Mapping):
        return dict(bundle)
    if isinstance(bundle, type):
        return {k: v for k, v in vars(bundle).items() if k not in _CLASS_BODY_SKIP}
    raise TypeError(f"cannot define members from {bundle!r}")


def _is_trigger(value) -> bool:
    if not isinstance(value, Instance):
        return False
    from corazon.trigger import AttributeTrigger
    return isinstance(value, AttributeTrigger)


def _is_mixin(value) -> bool:
    if not isinstance(value, Instance):
        return False
    from corazon.mixin import Mixin
    return isinstance(value, Mixin)


class Instance:
    """Root of every instance prototype."""

    _super = property(_current_super)

    def init(self, *args, **kwargs):
        """Initialize a new instance.

        Overrides reach their ancestors' `init` only by calling
        ``self._super()``.
        """

    def __repr__(self):
        return f"[{self.__identity__.__name__}]"


class ClassObject:
    """Behavior shared by every class and metaclass."""

    _super = property(_current_super)

    def __call__(self, *args, **kwargs):
        return self.create(*args, **kwargs)

    def __instancecheck__(self, instance):
        return isinstance(instance, self.__prototype__)

    def __subclasscheck__(self, subclass):
        return isinstance(subclass, ClassObject) and issubclass(
            subclass.__prototype__, self.__prototype__
        )

    def __repr__(self):
        return f"[{self.__name__} Class]"

    @property
    def __mixins__(self) -> list:
        history = list(self.__parent__.__mixins__) if self.__parent__ is not None else []
        history.extend(m for m in self.__included__ if m not in history)
        return history

    @property
    def __is_metaclass__(self) -> bool:
        return self.__metaclass__ is None

    def extend(self, *bundles, statics=None, name=None):
        """Derive a new class.

        Positional bundles define instance members. Class-level members go in
        `statics`, either one bundle or a list of them.
        """
        name = name or ANONYMOUS
        prototype = type(name, (self.__prototype__,), {})
        meta_prototype = type(f"{name}Class", (type(self),), {})
        cls = _make_class(name, prototype, meta_prototype, self)
        logger.debug("derived %r from %r", cls, self)
        cls._define(bundles, reopen=False)
        if statics is not None:
            if not isinstance(statics, (list, tuple)):
                statics = [statics]
            cls._define_class(statics, reopen=False)
        return cls

    def reopen(self, *bundles):
        self._define(bundles, reopen=True)
        return self

    def reopen_class(self, *bundles):
        self._define_class(bundles, reopen=True)
        return self

    def new(self, *args, **kwargs):
        """Allocate an instance and run its `new` hooks, without `init`."""
        instance = object.__new__(self.__prototype__)
        for proto in reversed(self.__prototype__.__mro__):
            hook = proto.__dict__.get("new")
            if hook is not None:
                hook(instance, *args, **kwargs)
        return instance

    def create(self, *args, **kwargs):
        instance = self.new(*args, **kwargs)
        instance.init(*args, **kwargs)
        return instance

    def _rename(self, name: str):
        self.__name__ = name
        self.__prototype__.__name__ = self.__prototype__.__qualname__ = name
        if not self.__is_metaclass__:
            meta = type(self)
            meta.__name__ = meta.__qualname__ = f"{name}Class"
            self.__metaclass__.__name__ = f"{name} Metaclass"
        return self

    def _define_class(self, bundles, reopen):
        metaclass = self.__metaclass__
        for bundle in bundles:
            if isinstance(bundle, Mapping) and "__name__" in bundle:
                self._rename(bundle["__name__"])
                bundle = {k: v for k, v in bundle.items() if k != "__name__"}
            metaclass._define([bundle], reopen)

    def _define(self, bundles, reopen):
        for bundle in bundles:
            if _is_mixin(bundle):
                self._include(bundle, reopen)
            else:
                self._apply(members(bundle), reopen)

    def _include(self, mixin, reopen):
        history = self.__mixins__
        for each in mixin.__mixins__:
            # applied to this class already; an ancestor's copy is reapplied
            if each in self.__included__:
                continue
            if each not in history:
                history.append(each)
                self.__included__.append(each)
                logger.debug("%r includes %r", self, each)
            self._apply(dict(each.properties), reopen)

    def _apply(self, definitions: dict, reopen: bool):
        prototype = self.__prototype__
        for name, value in definitions.items():
            if _is_trigger(value):
                from corazon.trigger import TriggerDetails

                logger.debug("%r: %r installs %s", self, value, name)
                value.invoke(name, reopen, TriggerDetails(name=name, prototype=prototype, owner=self))
            elif _is_mixin(value):
                self._include(value, reopen)
            elif inspect.isfunction(value) and not (
                name in RAW_MEMBERS and not self.__is_metaclass__
            ):
                overridden = _overridden(prototype, name)
                if overridden is not None:
                    logger.debug("%r: %s overrides %s", self, name, overridden.__qualname__)
                setattr(prototype, name, wrap(value, overridden))
            else:
                setattr(prototype, name, value)


def _make_metaclass(name: str, prototype: type, parent):
    meta = object.__new__(ClassObject)
    meta.__dict__.update(
        __identity__=meta,
        __parent__=parent,
        __prototype__=prototype,
        __metaclass__=None,
        __included__=[],
        __name__=f"{name} Metaclass",
    )
    return meta


def _make_class(name: str, prototype: type, meta_prototype: type, parent):
    parent_meta = parent.__metaclass__ if parent is not None else None
    metaclass = _make_metaclass(name, meta_prototype, parent_meta)
    cls = object.__new__(meta_prototype)
    cls.__dict__.update(
        __identity__=cls,
        __parent__=parent,
        __prototype__=prototype,
        __metaclass__=metaclass,
        __included__=[],
        __name__=name,
    )
    prototype.__identity__ = cls
    prototype.__metaclass__ = metaclass
    return cls


Class = _make_class("Class", Instance, type("ClassClass", (ClassObject,), {}), None)
