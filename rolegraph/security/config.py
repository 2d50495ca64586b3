from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from rolegraph.providers.memory import InMemoryRoleProvider
from rolegraph.rbac.service import GrantPolicy


class AuthConfig(BaseModel):
    authorization_header: str = "Authorization"
    bearer_prefix: str = "Bearer"


class RbacOptions(BaseModel):
    guest_role: str = ""
    force_reload: bool = False
    create_missing_roles: bool = False
    grant_policy: GrantPolicy = GrantPolicy.ANY
    # Only fetch grants of the permission being checked (needs force_reload).
    scope_to_permission: bool = False

    @model_validator(mode="after")
    def _scope_needs_reload(self) -> RbacOptions:
        if self.scope_to_permission and not self.force_reload:
            raise ValueError("rbac.scope_to_permission requires rbac.force_reload")
        return self


class RouteRule(BaseModel):
    path: str
    methods: list[str] = Field(default_factory=lambda: ["GET"])

    auth_required: bool | None = None
    roles: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)

    def normalized_methods(self) -> set[str]:
        return {m.upper() for m in self.methods}


class SecurityConfigModel(BaseModel):
    auth: AuthConfig = Field(default_factory=AuthConfig)
    rbac: RbacOptions = Field(default_factory=RbacOptions)
    protection_policy: Literal["deny", "allow"] = "deny"
    routes: list[RouteRule] = Field(default_factory=list)

    # Inline role hierarchy; when absent, roles come from the database.
    roles: dict[str, Any] | list[str] | None = None


@dataclass(frozen=True)
class EffectiveRule:
    """
    Fully-resolved rule for a particular request.

    ``roles``: the identity needs at least one of them (hierarchy included).
    ``permissions``: the identity needs every one of them.
    """

    auth_required: bool
    roles: frozenset[str]
    permissions: tuple[str, ...]


def _path_template_to_regex(path_template: str) -> re.Pattern[str]:
    # Convert "/reports/{id}" -> r"^/reports/[^/]+$"
    regex = re.sub(r"\{[^/]+\}", r"[^/]+", path_template)
    return re.compile(rf"^{regex}$")


class SecurityConfig:
    """
    Runtime helper around validated config + route matching.
    """

    def __init__(self, model: SecurityConfigModel):
        self.model = model

        compiled: list[tuple[str, re.Pattern[str], RouteRule]] = []
        for rule in self.model.routes:
            compiled.append((rule.path, _path_template_to_regex(rule.path), rule))

        # Prefer exact matches over templates.
        self._exact_rules: dict[str, list[RouteRule]] = {}
        for r in self.model.routes:
            self._exact_rules.setdefault(r.path, []).append(r)
        self._compiled_rules = compiled

        self._role_provider = InMemoryRoleProvider.from_mapping(model.roles) if model.roles is not None else None

    @property
    def auth(self) -> AuthConfig:
        return self.model.auth

    @property
    def rbac(self) -> RbacOptions:
        return self.model.rbac

    @property
    def protection_policy(self) -> str:
        return self.model.protection_policy

    @property
    def role_provider(self) -> InMemoryRoleProvider | None:
        """Provider for inline ``roles``; None when roles live in the database."""
        return self._role_provider

    def guards(self) -> list[dict[str, Any]]:
        """Route rules as plain dicts, for diagnostics."""
        return [rule.model_dump() for rule in self.model.routes]

    def match(self, path: str, method: str) -> EffectiveRule | None:
        """
        Find the best matching rule for (path, method).

        Returns None when no rule matches; the caller applies the protection policy.
        """

        method = method.upper()

        # 1) exact path match
        for candidate in self._exact_rules.get(path, []):
            if method in candidate.normalized_methods():
                return _effective(candidate)

        # 2) template match
        for _template, regex, candidate in self._compiled_rules:
            if method not in candidate.normalized_methods():
                continue
            if regex.match(path):
                return _effective(candidate)

        return None


def _effective(rule: RouteRule) -> EffectiveRule:
    # Role and permission requirements may be met by the guest role, so they
    # do not imply authentication on their own.
    return EffectiveRule(
        auth_required=bool(rule.auth_required),
        roles=frozenset(rule.roles),
        permissions=tuple(rule.permissions),
    )


def load_security_config(path: Path) -> SecurityConfig:
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}

    if "security" not in raw:
        raise ValueError(f"Missing top-level 'security' key in config: {path}")

    model = SecurityConfigModel.model_validate(raw["security"])
    return SecurityConfig(model)
