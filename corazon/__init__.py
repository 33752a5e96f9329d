"""corazon: classes, mixins, super calls and accessors for plain Python objects.

    Animal = Class.extend({"speak": lambda self: "speaking"}, name="Animal")
    Dog = Animal.extend({"speak": lambda self: self._super().upper()}, name="Dog")
    Dog.create().speak()   # "SPEAKING"

The kernel lives in ``corazon.kernel``; mixins, attribute triggers and
properties are layered on top of it.
"""

from corazon.kernel import Class, SuperRebindError
from corazon.mixin import Mixin, MixinExtendError
from corazon.property import Property, PropertyAccessError, prop
from corazon.trigger import AttributeTrigger, TriggerDetails

__all__ = [
    "Class", "SuperRebindError",
    "Mixin", "MixinExtendError",
    "AttributeTrigger", "TriggerDetails",
    "Property", "PropertyAccessError", "prop",
]
