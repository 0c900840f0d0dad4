"""Declarative per-group SSL policy and the registry that indexes it."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from starlette.routing import BaseRoute, Route

from ssl_requirement.core.config import Settings
from ssl_requirement.core.errors import SslConfigurationError
from ssl_requirement.schemas.policy import ActionKey, SslMode

logger = logging.getLogger(__name__)

ALL = "all"


def _action_name(action: str | Callable[..., Any]) -> str:
    if isinstance(action, str):
        name = action.strip()
    else:
        name = getattr(action, "__name__", "")
    if not name:
        raise SslConfigurationError(f"Cannot use {action!r} as an action name")
    return name


class SslPolicy:
    """SSL declarations for one group of actions.

    A policy created with ``parent`` (or through :meth:`extend`) sees every
    declaration of its parent; its own declarations only add to them.
    """

    def __init__(self, group: str, parent: SslPolicy | None = None) -> None:
        if not group:
            raise SslConfigurationError("Policy group name must not be empty")
        self.group = group
        self.parent = parent
        self._required: set[str] = set()
        self._allowed: set[str] = set()
        self._exceptions: set[str] = set()
        self._exceptions_declared = False

    def ssl_required(self, *actions: str | Callable[..., Any]) -> SslPolicy:
        names = {_action_name(action) for action in actions}
        if ALL in names:
            raise SslConfigurationError(f"'{ALL}' is only accepted by ssl_allowed")
        self._required.update(names)
        return self

    def ssl_allowed(self, *actions: str | Callable[..., Any]) -> SslPolicy:
        self._allowed.update(_action_name(action) for action in actions)
        return self

    def ssl_exceptions(self, *actions: str | Callable[..., Any]) -> SslPolicy:
        """Require SSL for every action except ``actions``.

        With no arguments every action in the group requires SSL.
        """

        names = {_action_name(action) for action in actions}
        if ALL in names:
            raise SslConfigurationError(f"'{ALL}' is only accepted by ssl_allowed")
        self._exceptions_declared = True
        self._exceptions.update(names)
        return self

    def extend(self, group: str) -> SslPolicy:
        return SslPolicy(group, parent=self)

    @property
    def required(self) -> frozenset[str]:
        inherited = self.parent.required if self.parent else frozenset()
        return inherited | self._required

    @property
    def allowed(self) -> frozenset[str]:
        inherited = self.parent.allowed if self.parent else frozenset()
        return inherited | self._allowed

    @property
    def exceptions(self) -> frozenset[str]:
        inherited = self.parent.exceptions if self.parent else frozenset()
        return inherited | self._exceptions

    @property
    def exceptions_declared(self) -> bool:
        if self._exceptions_declared:
            return True
        return self.parent.exceptions_declared if self.parent else False

    def resolve(self, action: str) -> SslMode:
        """Return the declared mode for ``action``, ignoring runtime settings."""

        if action in self.required:
            return SslMode.REQUIRE
        allowed = self.allowed
        if ALL in allowed or action in allowed:
            return SslMode.ALLOW
        if self.exceptions_declared:
            return SslMode.EXCEPTION if action in self.exceptions else SslMode.REQUIRE
        return SslMode.EXCEPTION_DEFAULT

    def build(self, actions: Iterable[str]) -> PolicyTable:
        """Compile the declarations for ``actions`` into a lookup table."""

        known = set(actions)
        declared = self.required | (self.allowed - {ALL}) | self.exceptions
        unknown = declared - known
        if unknown:
            raise SslConfigurationError(
                f"Group {self.group!r} declares SSL policy for unknown action(s): {', '.join(sorted(unknown))}"
            )
        return PolicyTable(self.group, {action: self.resolve(action) for action in known})

    def __repr__(self) -> str:
        return f"SslPolicy({self.group!r})"


class PolicyTable(Mapping[str, SslMode]):
    """Frozen action -> mode table for one group."""

    def __init__(self, group: str, modes: Mapping[str, SslMode]) -> None:
        self.group = group
        self._modes = MappingProxyType(dict(modes))

    def __getitem__(self, action: str) -> SslMode:
        return self._modes[action]

    def __iter__(self) -> Iterator[str]:
        return iter(self._modes)

    def __len__(self) -> int:
        return len(self._modes)

    def mode_for(self, action: str, settings: Settings) -> SslMode:
        if settings.disable_ssl_check:
            return SslMode.ALLOW
        return self._modes[action]


class PolicyRegistry:
    """Index of registered groups and the endpoints that belong to them."""

    def __init__(self) -> None:
        self._tables: dict[str, PolicyTable] = {}
        self._endpoints: dict[Callable[..., Any], ActionKey] = {}

    def register(self, router: Any, policy: SslPolicy) -> PolicyTable:
        """Register the routes of ``router`` (anything with ``.routes``) under ``policy``."""

        routes: Iterable[BaseRoute] = getattr(router, "routes", router)
        endpoints: dict[str, Callable[..., Any]] = {}
        names: dict[Callable[..., Any], str] = {}
        for route in routes:
            if not isinstance(route, Route):
                continue
            existing = endpoints.get(route.name)
            if existing is not None and existing is not route.endpoint:
                raise SslConfigurationError(
                    f"Group {policy.group!r} has more than one action named {route.name!r}"
                )
            # Actions are looked up by endpoint, so each endpoint gets exactly one name.
            other_name = names.get(route.endpoint)
            if other_name is not None and other_name != route.name:
                raise SslConfigurationError(
                    f"Endpoint {route.name!r} in group {policy.group!r} is also routed as {other_name!r}"
                )
            endpoints[route.name] = route.endpoint
            names[route.endpoint] = route.name

        for endpoint in endpoints.values():
            owner = self._endpoints.get(endpoint)
            if owner is not None and owner.group != policy.group:
                raise SslConfigurationError(
                    f"Endpoint {getattr(endpoint, '__name__', endpoint)!r} already belongs to group {owner.group!r}"
                )

        table = self.register_actions(policy, endpoints)
        for name, endpoint in endpoints.items():
            self._endpoints[endpoint] = ActionKey(group=policy.group, action=name)
        return table

    def register_actions(self, policy: SslPolicy, actions: Iterable[str]) -> PolicyTable:
        """Register a group by action names alone."""

        if policy.group in self._tables:
            raise SslConfigurationError(f"Group {policy.group!r} is already registered")
        table = policy.build(actions)
        self._tables[policy.group] = table
        logger.info("Registered SSL policy for group %s (%d action(s))", policy.group, len(table))
        return table

    def action_for(self, endpoint: Callable[..., Any] | None) -> ActionKey | None:
        if endpoint is None:
            return None
        return self._endpoints.get(endpoint)

    def table(self, group: str) -> PolicyTable:
        return self._tables[group]

    def mode_for(self, key: ActionKey, settings: Settings) -> SslMode:
        return self._tables[key.group].mode_for(key.action, settings)

    def clear(self) -> None:
        self._tables.clear()
        self._endpoints.clear()

    def __contains__(self, group: object) -> bool:
        return group in self._tables


_registry = PolicyRegistry()


def get_registry() -> PolicyRegistry:
    """Return the process-wide policy registry."""

    return _registry
