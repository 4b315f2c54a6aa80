"""azpipes CLI entry point."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

load_dotenv(Path.cwd() / ".env")

from azpipes import __version__
from azpipes.config import PollingConfig, Settings, get_settings
from azpipes.credentials import (
    CredentialSource,
    chain_credentials,
    prompt_credential,
    resolve_pat,
    settings_credential,
)
from azpipes.exceptions import CredentialError
from azpipes.orchestrator import PipelineOrchestrator
from azpipes.services.azure_devops import (
    AzureDevOpsAPIError,
    AzureDevOpsClient,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Reduce noise from HTTP libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = """# azpipes configuration
# The personal access token belongs in .env (AZPIPES_PAT), not here.

organization: ""
project: ""

polling:
  interval_seconds: 30
  # max_attempts: 240   # unset = poll until the run finishes

# Runs top to bottom; the first failure stops the rest.
pipelines:
  # - name: build
  #   id: 12
  #   ref: main
  # - name: deploy
  #   id: 34
  #   ref: refs/heads/release
"""


def _load_settings(args: argparse.Namespace) -> Settings:
    config_path = Path(args.config).resolve() if args.config else None
    return get_settings(config_path)


def _init_logfire(settings: Settings) -> None:
    """Initialize Logfire if available, without failing commands."""
    try:
        from azpipes.observability import initialize_logfire

        initialize_logfire(settings)
    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")


def _credential_source(settings: Settings, allow_prompt: bool) -> CredentialSource:
    sources = [settings_credential(settings)]
    if allow_prompt and sys.stdin.isatty():
        sources.append(prompt_credential())
    return chain_credentials(*sources)


def _require_target(settings: Settings) -> None:
    missing = [name for name in ("organization", "project") if not getattr(settings, name)]
    if missing:
        raise ValueError(
            f"Missing {', '.join(missing)}. Set them in config.yaml "
            "or as AZPIPES_ORGANIZATION / AZPIPES_PROJECT."
        )


def _create_client(settings: Settings, allow_prompt: bool) -> AzureDevOpsClient:
    _require_target(settings)
    pat = resolve_pat(_credential_source(settings, allow_prompt))
    return AzureDevOpsClient(
        organization=settings.organization,
        project=settings.project,
        pat=pat,
        config=settings.azure_devops,
    )


def _print_validation_error(e: ValidationError) -> None:
    print("\n❌ Configuration Error:\n")
    for error in e.errors():
        print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
    print()


def cmd_init(args: argparse.Namespace) -> int:
    """Create the data directory and a config.yaml template."""
    data_dir = Path(args.data_dir).resolve()

    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created data directory: {data_dir}")

        config_path = data_dir / "config.yaml"
        if not config_path.exists():
            config_path.write_text(CONFIG_TEMPLATE)
            logger.info(f"Created config template: {config_path}")
        else:
            logger.info(f"Config file already exists: {config_path}")

        print(f"\n✓ Data directory initialized at {data_dir}")
        print("\nNext steps:")
        print("1. Put AZPIPES_PAT=<token> in .env")
        print("2. Fill in organization, project and pipelines in config.yaml")
        print("3. Run 'python -m azpipes config' to verify configuration")
        print("4. Run 'python -m azpipes run' to start the sequence\n")

        return 0

    except OSError as e:
        logger.error(f"Failed to initialize: {e}")
        print(f"\n❌ Initialization failed: {e}\n")
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = _load_settings(args)

        print("\n=== azpipes Configuration ===\n")
        print(f"Data Directory: {settings.data_dir}\n")

        print("Target:")
        print(f"  Organization: {settings.organization or '(not set)'}")
        print(f"  Project: {settings.project or '(not set)'}")
        print(f"  API Version: {settings.azure_devops.api_version}\n")

        print("Polling:")
        print(f"  Interval: {settings.polling.interval_seconds:g}s")
        max_attempts = settings.polling.max_attempts
        print(f"  Max Attempts: {max_attempts if max_attempts else 'unbounded'}\n")

        print(f"Pipelines ({len(settings.pipelines)}):")
        if settings.pipelines:
            for i, spec in enumerate(settings.pipelines, 1):
                print(f"  {i}. {spec}")
        else:
            print("  (None)")
        print()

        print("API Keys:")
        print(f"  PAT: {'✓ Set' if settings.pat else '✗ Not set'}")
        print(f"  Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")

        return 0

    except ValidationError as e:
        _print_validation_error(e)
        return 1
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        print(f"\n❌ Failed to load configuration: {e}\n")
        return 1


async def _list_pipelines(client: AzureDevOpsClient) -> int:
    async with client:
        definitions = await client.list_pipelines()

    print(f"\n=== Pipelines in {client.organization}/{client.project} ===\n")
    if not definitions:
        print("  (None)\n")
        return 0
    for definition in sorted(definitions, key=lambda d: d.path.lower()):
        print(f"  {definition.id:>6}  {definition.path}")
    print()
    return 0


def cmd_pipelines(args: argparse.Namespace) -> int:
    """List pipeline definitions to look up their ids."""
    try:
        settings = _load_settings(args)
        _init_logfire(settings)
        client = _create_client(settings, allow_prompt=not args.no_prompt)
        return asyncio.run(_list_pipelines(client))

    except ValidationError as e:
        _print_validation_error(e)
        return 1
    except (ValueError, CredentialError, AzureDevOpsAPIError) as e:
        logger.error(f"Failed to list pipelines: {e}")
        print(f"\n❌ Failed to list pipelines: {e}\n")
        return 1


async def _run_sequence(
    client: AzureDevOpsClient,
    settings: Settings,
    polling: PollingConfig,
    start_at: str | None,
) -> int:
    async with client:
        orchestrator = PipelineOrchestrator(client, polling=polling)
        result = await orchestrator.run(settings.pipelines, start_at=start_at)

    print("\n=== Sequence Result ===\n")
    for name in result.skipped:
        print(f"  - {name}: skipped")
    for outcome in result.outcomes:
        mark = "✓" if outcome.succeeded else "✗"
        print(f"  {mark} {outcome.describe()}")
        if outcome.web_url:
            print(f"      {outcome.web_url}")
    print(f"\n{result.summary()}\n")

    return result.exit_code


def cmd_run(args: argparse.Namespace) -> int:
    """Run the configured pipelines in order, stopping on the first failure."""
    try:
        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)

        settings = _load_settings(args)
        _init_logfire(settings)

        overrides = settings.polling.model_dump()
        if args.interval is not None:
            overrides["interval_seconds"] = args.interval
        if args.max_polls is not None:
            overrides["max_attempts"] = args.max_polls
        polling = PollingConfig(**overrides)

        print("\n=== azpipes Sequential Runner ===\n")
        print(f"Version: {__version__}")
        print(f"Target: {settings.organization}/{settings.project}")
        print(f"Pipelines: {len(settings.pipelines)}")
        print(f"Poll Interval: {polling.interval_seconds:g}s\n")

        if not settings.pipelines:
            print("No pipelines configured; nothing to run.\n")
            return 0

        client = _create_client(settings, allow_prompt=not args.no_prompt)
        return asyncio.run(_run_sequence(client, settings, polling, args.start_at))

    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Remote runs keep going.\n")
        return 130
    except ValidationError as e:
        _print_validation_error(e)
        return 1
    except (ValueError, CredentialError) as e:
        logger.error(f"Cannot start sequence: {e}")
        print(f"\n❌ {e}\n")
        return 1
    except Exception as e:
        logger.error(f"Sequence run failed: {e}", exc_info=True)
        print(f"\n❌ Sequence run failed: {e}\n")
        return 1


async def _show_status(client: AzureDevOpsClient, pipeline_id: int, run_id: int) -> int:
    async with client:
        run = await client.get_run(pipeline_id, run_id)

    print(f"\n=== Run {run.id} of pipeline {run.pipeline_id} ===\n")
    print(f"Name: {run.name or 'N/A'}")
    print(f"State: {run.state.value}")
    print(f"Result: {run.result or 'N/A'}")
    if run.web_url:
        print(f"URL: {run.web_url}")
    print()
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Show the state and result of one run."""
    try:
        settings = _load_settings(args)
        _init_logfire(settings)
        client = _create_client(settings, allow_prompt=not args.no_prompt)
        return asyncio.run(_show_status(client, args.pipeline_id, args.run_id))

    except ValidationError as e:
        _print_validation_error(e)
        return 1
    except (ValueError, CredentialError, AzureDevOpsAPIError) as e:
        logger.error(f"Failed to read run status: {e}")
        print(f"\n❌ Failed to read run status: {e}\n")
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="azpipes",
        description="Run Azure DevOps pipelines one after another, stopping on failure",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"azpipes {__version__}",
    )
    parser.add_argument(
        "--config",
        help="Path to config.yaml (default: <data_dir>/config.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_init = subparsers.add_parser(
        "init",
        help="Create data directory and config.yaml template",
    )
    parser_init.add_argument(
        "--data-dir",
        default="data",
        help="Directory to create (default: data)",
    )
    parser_init.set_defaults(func=cmd_init)

    parser_config = subparsers.add_parser(
        "config",
        help="Display merged configuration",
    )
    parser_config.set_defaults(func=cmd_config)

    parser_pipelines = subparsers.add_parser(
        "pipelines",
        help="List pipeline definitions in the project",
    )
    parser_pipelines.add_argument(
        "--no-prompt",
        action="store_true",
        help="Never prompt for the PAT",
    )
    parser_pipelines.set_defaults(func=cmd_pipelines)

    parser_run = subparsers.add_parser(
        "run",
        help="Run the configured pipeline sequence",
    )
    parser_run.add_argument(
        "--from",
        dest="start_at",
        metavar="NAME",
        help="Resume the sequence at the named pipeline",
    )
    parser_run.add_argument(
        "--interval",
        type=float,
        help="Seconds between status polls (overrides config)",
    )
    parser_run.add_argument(
        "--max-polls",
        type=int,
        help="Give up on a run after this many polls (default: unbounded)",
    )
    parser_run.add_argument(
        "--no-prompt",
        action="store_true",
        help="Never prompt for the PAT",
    )
    parser_run.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser_run.set_defaults(func=cmd_run)

    parser_status = subparsers.add_parser(
        "status",
        help="Show state and result of one run",
    )
    parser_status.add_argument("--pipeline-id", type=int, required=True)
    parser_status.add_argument("--run-id", type=int, required=True)
    parser_status.add_argument(
        "--no-prompt",
        action="store_true",
        help="Never prompt for the PAT",
    )
    parser_status.set_defaults(func=cmd_status)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
