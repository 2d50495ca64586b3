"""Tests for assertion adapters and identity role extraction."""

import pytest

from rolegraph.rbac.assertions import Assertion, PredicateAssertion, as_assertion
from rolegraph.rbac.errors import InvalidAssertionError, InvalidIdentityError
from rolegraph.rbac.identity import SimpleIdentity, StaticIdentityProvider, identity_role_names
from rolegraph.rbac.role import Role


class OwnerAssertion:
    def __init__(self, owner):
        self.owner = owner

    def evaluate(self, identity):
        return identity is self.owner


def test_callable_is_wrapped():
    assertion = as_assertion(lambda identity: identity == "me")
    assert isinstance(assertion, PredicateAssertion)
    assert assertion.evaluate("me") is True
    assert assertion.evaluate("you") is False


def test_assertion_object_returned_unchanged():
    owner = object()
    assertion = OwnerAssertion(owner)
    assert as_assertion(assertion) is assertion
    assert isinstance(assertion, Assertion)


def test_invalid_assertion_raises():
    with pytest.raises(InvalidAssertionError, match="'int'"):
        as_assertion(42)


def test_invalid_assertion_is_type_error():
    with pytest.raises(TypeError):
        as_assertion("not callable")


def test_predicate_result_coerced_to_bool():
    assert PredicateAssertion(lambda identity: 1).evaluate(None) is True
    assert PredicateAssertion(lambda identity: None).evaluate(None) is False


class _RoleRow:
    def __init__(self, name):
        self.name = name


class _GeneratorIdentity:
    @property
    def roles(self):
        yield "member"
        yield Role("editor")


def test_identity_roles_from_names_and_role_values():
    identity = SimpleIdentity(roles=("admin", Role("editor"), _RoleRow("member")))
    assert identity_role_names(identity) == ["admin", "editor", "member"]


def test_identity_roles_from_iterable_source():
    assert identity_role_names(_GeneratorIdentity()) == ["member", "editor"]


def test_single_string_role():
    class Identity:
        roles = "admin"

    assert identity_role_names(Identity()) == ["admin"]


def test_identity_without_roles_raises():
    with pytest.raises(InvalidIdentityError):
        identity_role_names(object())


def test_identity_with_non_iterable_roles_raises():
    class Identity:
        roles = 12

    with pytest.raises(InvalidIdentityError):
        identity_role_names(Identity())


def test_identity_with_unnameable_role_raises():
    with pytest.raises(InvalidIdentityError):
        identity_role_names(SimpleIdentity(roles=("admin", 3)))


def test_static_identity_provider():
    identity = SimpleIdentity(roles=("admin",))
    assert StaticIdentityProvider(identity).get_identity() is identity
    assert StaticIdentityProvider().get_identity() is None


def test_assertion_class_instead_of_instance_raises():
    with pytest.raises(InvalidAssertionError, match="OwnerAssertion"):
        as_assertion(OwnerAssertion)
