"""Internal data models for ingress-http.

All models use Pydantic v2. Routing models describe the pre-fetched ingress
resources; the remaining models carry one probe run from target resolution
through request execution.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Routing Models
# =============================================================================


class RoutingPath(BaseModel):
    """One path entry of a routing rule.

    The backend description is for display only and is never dereferenced.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    path_prefix: str = Field(description="Path prefix, e.g., /svc/")
    backend_description: str = Field(
        default="<none>", description="Human-readable backend, e.g., web:80"
    )


class RoutingRule(BaseModel):
    """A host plus its ordered path entries."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = Field(default="", description="Host name the rule matches")
    paths: list[RoutingPath] = Field(default_factory=list, description="Ordered path entries")


class RoutingResource(BaseModel):
    """One discoverable ingress-like object."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(description="Resource name")
    namespace: str | None = Field(default=None, description="Namespace the resource lives in")
    rules: list[RoutingRule] = Field(default_factory=list, description="Ordered routing rules")


class ResolvedTarget(BaseModel):
    """The single host + path prefix chosen by the resolver."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str
    path_prefix: str


# =============================================================================
# Execution Models
# =============================================================================


class RequestSpec(BaseModel):
    """Everything needed to issue one logical request, once or repeatedly."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    method: str = Field(description="HTTP method (GET, POST, etc.)")
    url: str = Field(description="Absolute request URL")
    body: bytes | None = Field(default=None, description="Raw request body")
    content_type: str | None = Field(default=None, description="Content-Type header value")
    skip_tls_verify: bool = Field(default=False, description="Disable certificate validation")
    repeat: bool = Field(default=False, description="Repeat the request until stopped")

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        method = v.strip().upper()
        if not method:
            raise ValueError("method must not be empty")
        return method


class ExecutionReport(BaseModel):
    """Outcome of one physical HTTP call.

    Header keys are lowercase. Header values are arrays for repeated headers.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    elapsed_ms: int = Field(description="Wall-clock time until response headers arrived")
    status_code: int = Field(description="HTTP status code")
    headers: dict[str, list[str]] = Field(
        default_factory=dict, description="Response headers (lowercase keys, array values)"
    )
    body: bytes = Field(default=b"", description="Full response body")


# =============================================================================
# Run Configuration
# =============================================================================


class RunConfig(BaseModel):
    """Run parameters for one probe, built once by the CLI layer.

    Every field is optional so the same model serves both the YAML config
    file and the command-line overrides merged on top of it.
    """

    model_config = ConfigDict(extra="forbid")

    resources: str | None = Field(default=None, description="Path to pre-fetched ingress list")
    ingress: str | None = Field(default=None, description="Fixed ingress name")
    namespace: str | None = Field(default=None, description="Only consider this namespace")
    method: str | None = Field(default=None, description="HTTP method; prompted when unset")
    path: str | None = Field(default=None, description="Sub-path; prompted when unset")
    body: str | None = Field(default=None, description="Inline body or .json/.xml/.txt file")
    https: bool = Field(default=False, description="Use https instead of http")
    skip_verify: bool = Field(default=False, description="Skip TLS certificate verification")
    repeat: bool = Field(default=False, description="Repeat the request every second")
