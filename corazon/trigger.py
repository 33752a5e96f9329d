"""Attribute triggers: members that install themselves.

A trigger placed as a member value is not copied onto the class. Instead the
kernel calls its `invoke` with the member name, and the trigger installs
whatever it likes on the type being defined:

    class _Upper:
        def invoke(self, name, reopen, details):
            setattr(details.prototype, name.upper(), name)

    Upper = AttributeTrigger.extend(_Upper)
    Thing = Class.extend({"greeting": Upper.create()})
    Thing.create().GREETING   # "greeting"
"""

from dataclasses import dataclass
from typing import Any

from corazon.kernel import Class


@dataclass
class TriggerDetails:
    name: str
    prototype: type  # the Python type members are set on
    owner: Any  # class or metaclass being defined


class _AttributeTrigger:
    def invoke(self, name, reopen, details):
        """Install the member `name` onto `details.prototype`.

        Called once per definition pass. `reopen` is False under `extend` and
        True under `reopen`/`reopen_class`.
        """
        raise NotImplementedError(
            f"{self.__identity__.__name__}.invoke must be overridden by a subclass"
        )


AttributeTrigger = Class.extend(_AttributeTrigger, name="AttributeTrigger")
