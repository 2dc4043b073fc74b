"""CLI entry point for ingress-http.

Handles argument parsing and dispatches to request or list-targets mode.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from ingress_http.config_loader import (
    ConfigError,
    load_routing_resources,
    load_run_config,
    merge_run_config,
)
from ingress_http.content_type import FileReadError, resolve_body
from ingress_http.executor import Executor, ExecutorError
from ingress_http.models import (
    ExecutionReport,
    RequestSpec,
    ResolvedTarget,
    RoutingResource,
    RunConfig,
)
from ingress_http.path_joiner import join_path
from ingress_http.prompt import ConsolePrompt, InteractivePrompt, PromptError, select_method
from ingress_http.target_resolver import ResolverError, TargetResolver, describe_path

# Methods for which the operator is asked for a request body.
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

_RUN_ERRORS = (ConfigError, ResolverError, PromptError, FileReadError, ExecutorError)


@dataclass
class RequestArgs:
    """Parsed arguments for request mode."""

    resources: Path | None
    config: Path | None
    ingress: str | None
    namespace: str | None
    method: str | None
    path: str | None
    body: str | None
    https: bool
    skip_verify: bool
    repeat: bool


@dataclass
class ListTargetsArgs:
    """Parsed arguments for list-targets mode."""

    resources: Path
    namespace: str | None


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with request and list-targets subcommands."""
    parser = argparse.ArgumentParser(
        prog="ingress-http",
        description="Call an HTTP endpoint discovered from ingress routing rules.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Execution mode")

    # Request subcommand
    request_parser = subparsers.add_parser(
        "request",
        help="Pick an ingress host/path and send an HTTP request to it",
    )
    request_parser.add_argument(
        "--resources",
        type=Path,
        default=None,
        help="Path to saved `kubectl get ingress -o yaml|json` output",
    )
    request_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to run configuration file (YAML) with defaults for these options",
    )
    request_parser.add_argument(
        "-i", "--ingress",
        type=str,
        default=None,
        help="Ingress name (skips the ingress menu)",
    )
    request_parser.add_argument(
        "-n", "--namespace",
        type=str,
        default=None,
        help="Only consider ingresses in this namespace",
    )
    request_parser.add_argument(
        "-m", "--method",
        type=str,
        default=None,
        help="HTTP method (prompted when omitted)",
    )
    request_parser.add_argument(
        "-p", "--path",
        type=str,
        default=None,
        help="Request path below the ingress path (prompted when omitted)",
    )
    request_parser.add_argument(
        "-b", "--body",
        type=str,
        default=None,
        help="Request body, inline or a .json/.xml/.txt file (prompted for POST/PUT/PATCH)",
    )
    request_parser.add_argument(
        "--https",
        action="store_true",
        default=False,
        help="Use https",
    )
    request_parser.add_argument(
        "--skip-verify",
        action="store_true",
        default=False,
        dest="skip_verify",
        help="Skip TLS certificate verification",
    )
    request_parser.add_argument(
        "-r", "--repeat",
        action="store_true",
        default=False,
        help="Repeat the request every second until interrupted",
    )

    # List-targets subcommand
    list_parser = subparsers.add_parser(
        "list-targets",
        help="List every ingress host/path and its backend",
    )
    list_parser.add_argument(
        "--resources",
        type=Path,
        required=True,
        help="Path to saved `kubectl get ingress -o yaml|json` output",
    )
    list_parser.add_argument(
        "-n", "--namespace",
        type=str,
        default=None,
        help="Only list ingresses in this namespace",
    )

    return parser


def parse_request_args(namespace: argparse.Namespace) -> RequestArgs:
    """Convert parsed namespace to RequestArgs dataclass."""
    return RequestArgs(
        resources=namespace.resources,
        config=namespace.config,
        ingress=namespace.ingress,
        namespace=namespace.namespace,
        method=namespace.method,
        path=namespace.path,
        body=namespace.body,
        https=namespace.https,
        skip_verify=namespace.skip_verify,
        repeat=namespace.repeat,
    )


def parse_list_targets_args(namespace: argparse.Namespace) -> ListTargetsArgs:
    """Convert parsed namespace to ListTargetsArgs dataclass."""
    return ListTargetsArgs(resources=namespace.resources, namespace=namespace.namespace)


def parse_args(args: list[str] | None = None) -> RequestArgs | ListTargetsArgs:
    """Parse command-line arguments and return typed args dataclass.

    Args:
        args: Command-line arguments to parse. If None, uses sys.argv[1:].

    Raises:
        SystemExit: If arguments are invalid (argparse behavior).
    """
    parser = build_parser()
    namespace = parser.parse_args(args)

    if namespace.command == "request":
        return parse_request_args(namespace)
    elif namespace.command == "list-targets":
        return parse_list_targets_args(namespace)
    else:
        # Should not happen with required=True on subparsers
        parser.error(f"Unknown command: {namespace.command}")


def main() -> int:
    """Main entry point."""
    try:
        return dispatch(parse_args())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


def dispatch(parsed: RequestArgs | ListTargetsArgs) -> int:
    """Run the mode selected by the parsed arguments."""
    if isinstance(parsed, ListTargetsArgs):
        return run_list_targets(parsed)
    return run_request(parsed)


def run_list_targets(args: ListTargetsArgs) -> int:
    """Run list-targets mode.

    Prints every ingress with its host/path entries, without prompting.
    """
    try:
        resources = load_routing_resources(args.resources, args.namespace)
    except ConfigError as e:
        print(f"Error loading resources: {e}", file=sys.stderr)
        return 1

    total = 0
    for resource in resources:
        label = resource.name
        if resource.namespace:
            label = f"{resource.namespace}/{label}"
        print(label)
        for rule in resource.rules:
            for path in rule.paths:
                print(f"  {describe_path(rule, path)}")
                total += 1
        print()

    print(f"Total: {total} targets in {len(resources)} ingresses")
    return 0


def run_request(
    args: RequestArgs,
    prompt: InteractivePrompt | None = None,
    executor: Executor | None = None,
) -> int:
    """Run request mode.

    Loads the ingress resources, resolves one target, then sends the request
    and prints every report until done, failed, or interrupted.
    """
    prompt = prompt or ConsolePrompt()
    executor = executor or Executor()

    try:
        config = build_run_config(args)
        if not config.resources:
            print("Error: --resources is required (or set 'resources' in --config)", file=sys.stderr)
            return 1
        resources = load_routing_resources(Path(config.resources), config.namespace)
        spec = build_request_spec(config, resources, prompt)

        for number, report in enumerate(executor.reports(spec), start=1):
            print_report(spec, report, number)
    except _RUN_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def build_run_config(args: RequestArgs) -> RunConfig:
    """Merge the optional config file with the command-line values."""
    base = load_run_config(args.config) if args.config else RunConfig()
    overrides = {
        "resources": str(args.resources) if args.resources else None,
        "ingress": args.ingress,
        "namespace": args.namespace,
        "method": args.method,
        "path": args.path,
        "body": args.body,
        "https": args.https,
        "skip_verify": args.skip_verify,
        "repeat": args.repeat,
    }
    return merge_run_config(base, overrides)


def build_request_spec(
    config: RunConfig,
    resources: list[RoutingResource],
    prompt: InteractivePrompt,
    out: TextIO | None = None,
) -> RequestSpec:
    """Resolve the target and collect path, method and body into a RequestSpec.

    Values missing from config are asked for through the prompt.
    """
    target = TargetResolver(prompt, out).resolve(resources, config.ingress)

    sub_path = config.path if config.path is not None else prompt.read_line("path")
    url = build_url(target, sub_path, config.https)

    method = ((config.method or "").strip() or select_method(prompt, out)).upper()

    body: bytes | None = None
    content_type: str | None = None
    if method in BODY_METHODS:
        token = config.body if config.body is not None else prompt.read_line("body")
        if token:
            body, content_type = resolve_body(token)

    return RequestSpec(
        method=method,
        url=url,
        body=body,
        content_type=content_type,
        skip_tls_verify=config.skip_verify,
        repeat=config.repeat,
    )


def build_url(target: ResolvedTarget, sub_path: str, https: bool) -> str:
    """Build scheme://host + joined path."""
    scheme = "https" if https else "http"
    return f"{scheme}://{target.host}{join_path(target.path_prefix, sub_path)}"


def print_report(
    spec: RequestSpec,
    report: ExecutionReport,
    number: int,
    out: TextIO | None = None,
) -> None:
    """Print one execution: request line, timing, status, headers and body."""
    out = out if out is not None else sys.stdout
    print(f"requesting... [{number}] {spec.method} {spec.url}", file=out)
    print(f"Elapsed time(ms) : {report.elapsed_ms}", file=out)
    print(f"Status : {report.status_code}", file=out)
    for name, values in report.headers.items():
        print(f"{name} : {values}", file=out)
    print(report.body.decode("utf-8", errors="replace"), file=out)
    out.flush()


if __name__ == "__main__":
    sys.exit(main())
