"""Mixins: reusable, immutable member bundles.

A mixin is created from plain bundles and other mixins. Sub-mixins are
flattened into one ordered sequence with duplicates dropped, and the mixin
itself comes last:

    A = Mixin.create({...})
    B = Mixin.create(A, {...})
    C = Mixin.create(B, A, {...})
    C.__mixins__   # (A, B, C)

When a class consumes a mixin it records every mixin of that sequence not
already in its history (or an ancestor's) and applies each one's members in
order, so `_super` chains follow declaration order.
"""

from types import MappingProxyType

from corazon.kernel import Class, members


class MixinExtendError(TypeError):
    pass


def _cannot_extend(self, *args, **kwargs):
    raise MixinExtendError("cannot extend mixin")


class _Mixin:
    def init(self, *bundles):
        flattened = []
        properties = {}
        for bundle in bundles:
            if isinstance(bundle, Mixin):
                flattened.extend(m for m in bundle.__mixins__ if m not in flattened)
            else:
                # only the last plain bundle becomes the mixin's members
                properties = members(bundle)
        flattened.append(self)
        object.__setattr__(self, "__mixins__", tuple(flattened))
        object.__setattr__(self, "properties", MappingProxyType(properties))

    def __setattr__(self, name, value):
        raise AttributeError(f"cannot set {name!r}: mixins are immutable")

    def __delattr__(self, name):
        raise AttributeError(f"cannot delete {name!r}: mixins are immutable")

    def keys(self):
        return self.properties.keys()

    def __getitem__(self, name):
        return self.properties[name]

    def __iter__(self):
        return iter(self.properties)

    def __len__(self):
        return len(self.properties)

    def __contains__(self, name):
        return name in self.properties

    extend = _cannot_extend


Mixin = Class.extend(_Mixin, statics={"extend": _cannot_extend}, name="Mixin")
