"""Tests for mixin composition, flattening and application."""

import pytest

from corazon.kernel import Class
from corazon.mixin import Mixin, MixinExtendError
from corazon.property import prop
from corazon.trigger import AttributeTrigger


def bark(self):
    return "bark"


def walk(self):
    return "walk"


class TestShape:
    def test_looks_like_its_members(self):
        properties = {"first": "first", "second": lambda self: "second"}
        SimpleMixin = Mixin.create(properties)
        assert dict(SimpleMixin) == properties
        assert len(SimpleMixin) == 2
        assert "first" in SimpleMixin
        assert SimpleMixin["first"] == "first"

    def test_only_the_last_plain_bundle_is_kept(self):
        properties = {"first": "first"}
        SimpleMixin = Mixin.create({"ignored": "ignored"}, properties)
        assert dict(SimpleMixin) == properties

    def test_is_a_mixin(self):
        SimpleMixin = Mixin.create({})
        assert isinstance(SimpleMixin, Mixin)
        assert repr(SimpleMixin) == "[Mixin]"

    def test_is_immutable(self):
        SimpleMixin = Mixin.create({"first": "first"})
        with pytest.raises(AttributeError, match="immutable"):
            SimpleMixin.first = "second"
        with pytest.raises(TypeError):
            SimpleMixin.properties["first"] = "second"

    def test_cannot_be_extended(self):
        with pytest.raises(MixinExtendError, match="cannot extend mixin"):
            Mixin.extend()
        with pytest.raises(MixinExtendError):
            Mixin.create({}).extend()


class TestApplying:
    def test_mixin_without_instance_members(self):
        BarkMixin = Mixin.create({"bark": bark})
        Animal = Class.extend(BarkMixin)
        assert Animal.create().bark() == "bark"

    def test_mixin_with_instance_members(self):
        BarkMixin = Mixin.create({"bark": bark})
        Animal = Class.extend(BarkMixin, {"walk": walk})
        animal = Animal.create()
        assert animal.walk() == "walk"
        assert animal.bark() == "bark"

    def test_multiple_mixins(self):
        Animal = Class.extend(Mixin.create({"bark": bark}), Mixin.create({"walk": walk}), {})
        animal = Animal.create()
        assert animal.walk() == "walk"
        assert animal.bark() == "bark"

    def test_reopen(self):
        BarkMixin = Mixin.create({"bark": bark})
        LoudBarkMixin = Mixin.create(BarkMixin, {"bark": lambda self: self._super().upper()})
        Animal = Class.extend()
        Animal.reopen(LoudBarkMixin)
        assert Animal.create().bark() == "BARK"

    def test_reopen_class(self):
        BarkMixin = Mixin.create({"bark": bark})
        LoudBarkMixin = Mixin.create(BarkMixin, {"bark": lambda self: self._super().upper()})
        Animal = Class.extend()
        Animal.reopen_class(LoudBarkMixin)
        assert Animal.bark() == "BARK"
        assert Animal.__metaclass__.__mixins__ == [BarkMixin, LoudBarkMixin]

    def test_mixin_as_member_value(self):
        BarkMixin = Mixin.create({"bark": bark})
        Animal = Class.extend({"barking": BarkMixin})
        animal = Animal.create()
        assert animal.bark() == "bark"
        assert not hasattr(animal, "barking")
        assert Animal.__mixins__ == [BarkMixin]

    def test_triggers_inside_mixins(self):
        KindMixin = Mixin.create({"kind": prop(writable=True)})
        Dog = Class.extend(KindMixin)
        dog = Dog.create()
        dog.kind = "canine"
        assert dog._kind == "canine"


class TestSuper:
    def test_super_through_mixins_and_subclasses(self):
        BarkMixin = Mixin.create({"speak": lambda self: "bark " + (self._super() or "")})
        Animal = Class.extend(BarkMixin, {"speak": lambda self: "animal " + self._super()})
        Dog = Animal.extend(BarkMixin, {"speak": lambda self: "dog " + self._super()})
        assert Dog.create().speak().strip() == "dog bark animal bark"

    def test_nested_mixins_apply_in_declaration_order(self):
        AMixin = Mixin.create({"fn": lambda self: "a"})
        BMixin = Mixin.create({"fn": lambda self: self._super() + "b"})
        CMixin = Mixin.create(AMixin, BMixin, {"fn": lambda self: self._super() + "c"})
        DMixin = Mixin.create(CMixin, {"fn": lambda self: self._super() + "d"})
        Subclass = Class.extend(DMixin, {"fn": lambda self: self._super() + "e"})
        assert Subclass.create().fn() == "abcde"

    def test_nested_mixins_reach_the_base_class(self):
        AMixin = Mixin.create({"fn": lambda self: self._super() + "a"})
        BMixin = Mixin.create({"fn": lambda self: self._super() + "b"})
        CMixin = Mixin.create(AMixin, BMixin, {"fn": lambda self: self._super() + "c"})
        Baseclass = Class.extend({"fn": lambda self: "_"})
        Subclass = Baseclass.extend(CMixin, {"fn": lambda self: self._super() + "d"})
        assert Subclass.create().fn() == "_abcd"

    def test_shared_sub_mixin_applies_once(self):
        AMixin = Mixin.create({"fn": lambda self: self._super() + "a"})
        BMixin = Mixin.create(AMixin, {"fn": lambda self: self._super() + "b"})
        Baseclass = Class.extend({"fn": lambda self: "_"})
        Subclass = Baseclass.extend(AMixin, BMixin)
        assert Subclass.create().fn() == "_ab"
        assert Subclass.__mixins__ == [AMixin, BMixin]

    def test_reopening_with_an_included_mixin_is_a_no_op(self):
        AMixin = Mixin.create({"fn": lambda self: self._super() + "a"})
        Baseclass = Class.extend({"fn": lambda self: "_"})
        Subclass = Baseclass.extend(AMixin)
        Subclass.reopen(AMixin)
        assert Subclass.create().fn() == "_a"
        assert Subclass.__included__ == [AMixin]

    def test_shared_sub_mixin_trigger_runs_once(self):
        calls = []

        def invoke(self, name, reopen, details):
            calls.append(name)

        Recording = AttributeTrigger.extend({"invoke": invoke})
        AMixin = Mixin.create({"kind": Recording.create()})
        BMixin = Mixin.create(AMixin, {"size": 1})
        Class.extend(AMixin, BMixin)
        assert calls == ["kind"]


class TestHistory:
    def test_known_to_the_class(self):
        AMixin = Mixin.create({"name": "AMixin"})
        Subclass = Class.extend(AMixin)
        assert Subclass.__mixins__ == [AMixin]

    def test_sub_mixins_are_flattened_in_order(self):
        AMixin = Mixin.create({"name": "AMixin"})
        BMixin = Mixin.create({"name": "BMixin"})
        CMixin = Mixin.create({"name": "CMixin"}, AMixin, BMixin)
        DMixin = Mixin.create({"name": "DMixin"})
        EMixin = Mixin.create({"name": "EMixin"})
        FMixin = Mixin.create({"name": "FMixin"})
        GMixin = Mixin.create({"name": "GMixin"}, EMixin, FMixin)
        Subclass = Class.extend(CMixin, DMixin)
        Subclass.reopen(GMixin)
        assert Subclass.__mixins__ == [
            AMixin, BMixin, CMixin, DMixin, EMixin, FMixin, GMixin,
        ]
        assert dict(CMixin) == {"name": "CMixin"}

    def test_flattening_drops_duplicates(self):
        BMixin = Mixin.create({"b": 1})
        AMixin = Mixin.create(BMixin, {"a": 1})
        Combined = Mixin.create(AMixin, BMixin)
        assert Combined.__mixins__ == (BMixin, AMixin, Combined)

    def test_history_includes_ancestors_without_duplicates(self):
        BarkMixin = Mixin.create({"bark": bark})
        WalkMixin = Mixin.create({"walk": walk})
        Animal = Class.extend(BarkMixin)
        Dog = Animal.extend(BarkMixin, WalkMixin)
        assert Dog.__mixins__ == [BarkMixin, WalkMixin]
        assert Dog.__included__ == [WalkMixin]

    def test_history_sees_later_ancestor_changes(self):
        BarkMixin = Mixin.create({"bark": bark})
        Animal = Class.extend()
        Dog = Animal.extend()
        Animal.reopen(BarkMixin)
        assert Dog.__mixins__ == [BarkMixin]
        assert Dog.create().bark() == "bark"
