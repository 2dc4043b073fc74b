"""Target Resolver - Narrows routing resources down to one host + path.

Resolution runs three levels in order: resource, rule, path. A level with a
single candidate is selected automatically; a level with several candidates
is enumerated (1-based, input order) and the operator picks one through the
injected InteractivePrompt.
"""

from __future__ import annotations

import sys
from typing import Sequence, TextIO, TypeVar

from ingress_http.models import ResolvedTarget, RoutingPath, RoutingResource, RoutingRule
from ingress_http.prompt import InteractivePrompt

T = TypeVar("T")


class ResolverError(Exception):
    """Base class for resolver errors."""


class NotFoundError(ResolverError):
    """Raised when a named resource does not exist in the collection."""


class NoCandidatesError(ResolverError):
    """Raised when a resolution level has nothing to choose from."""


ANY_HOST = "<any host>"


def describe_path(rule: RoutingRule, path: RoutingPath) -> str:
    """Format a path entry as 'host/path -> backend'."""
    return f"{rule.host or ANY_HOST}{path.path_prefix} -> {path.backend_description}"


def describe_rule(rule: RoutingRule) -> str:
    """Format a rule with all of its paths for disambiguation."""
    paths = ", ".join(
        f"{p.path_prefix} -> {p.backend_description}" for p in rule.paths
    )
    return f"{rule.host or ANY_HOST} ({paths or 'no paths'})"


def describe_resource(resource: RoutingResource) -> str:
    """Format a resource with the host/path pairs it routes."""
    targets = ", ".join(
        f"{rule.host or ANY_HOST}{path.path_prefix}"
        for rule in resource.rules
        for path in rule.paths
    )
    name = resource.name
    if resource.namespace:
        name = f"{resource.namespace}/{name}"
    return f"{name} ({targets or 'no rules'})"


class TargetResolver:
    """Resolves a routing resource collection to a single ResolvedTarget.

    Usage:
        resolver = TargetResolver(ConsolePrompt())
        target = resolver.resolve(resources, preferred_name="web")
    """

    def __init__(self, prompt: InteractivePrompt, out: TextIO | None = None) -> None:
        """Initialize the resolver.

        Args:
            prompt: Source of operator choices at ambiguous levels.
            out: Stream for enumerations. Defaults to sys.stdout.
        """
        self._prompt = prompt
        self._out = out

    def resolve(
        self,
        resources: Sequence[RoutingResource],
        preferred_name: str | None = None,
    ) -> ResolvedTarget:
        """Resolve resources to one host + path prefix.

        Args:
            resources: Pre-fetched routing resources in display order.
            preferred_name: Exact resource name to use instead of prompting.

        Returns:
            ResolvedTarget whose host and path prefix come verbatim from input.

        Raises:
            NotFoundError: If preferred_name matches no resource.
            NoCandidatesError: If any level has zero candidates.
            InputExhaustedError: If input ends before a selection is made.
        """
        resource = self.select_resource(resources, preferred_name)
        rule = self.select_rule(resource)
        path = self.select_path(rule)
        return ResolvedTarget(host=rule.host, path_prefix=path.path_prefix)

    def select_resource(
        self,
        resources: Sequence[RoutingResource],
        preferred_name: str | None = None,
    ) -> RoutingResource:
        """Pick the resource level. The preferred name wins over auto-selection."""
        if preferred_name:
            for resource in resources:
                if resource.name == preferred_name:
                    return resource
            available = ", ".join(r.name for r in resources) or "none"
            raise NotFoundError(
                f"Ingress '{preferred_name}' not found. Available: {available}"
            )

        if not resources:
            raise NoCandidatesError("No ingress resources found")

        return self._choose(resources, [describe_resource(r) for r in resources])

    def select_rule(self, resource: RoutingResource) -> RoutingRule:
        """Pick a rule within the selected resource."""
        if not resource.rules:
            raise NoCandidatesError(f"Ingress '{resource.name}' has no rules")
        return self._choose(resource.rules, [describe_rule(r) for r in resource.rules])

    def select_path(self, rule: RoutingRule) -> RoutingPath:
        """Pick a path within the selected rule."""
        if not rule.paths:
            raise NoCandidatesError(f"Rule for host '{rule.host}' has no paths")
        return self._choose(rule.paths, [describe_path(rule, p) for p in rule.paths])

    def _choose(self, candidates: Sequence[T], labels: list[str]) -> T:
        """Auto-select a single candidate, otherwise enumerate and prompt.

        The labels are printed once; every answer is checked against that
        same list, and out-of-range answers are asked for again.
        """
        if len(candidates) == 1:
            return candidates[0]

        out = self._out if self._out is not None else sys.stdout
        for i, label in enumerate(labels, start=1):
            print(f"[{i}] {label}", file=out)

        max_exclusive = len(candidates) + 1
        while True:
            num = self._prompt.select_index(max_exclusive)
            if 1 <= num < max_exclusive:
                return candidates[num - 1]
            print(f"[{num}] is unknown number.", file=out)
