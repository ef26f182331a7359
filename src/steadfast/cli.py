"""CLI interface for Steadfast"""

import asyncio
import logging
import random
import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from steadfast.application.generation_service import GenerationResult, GenerationService
from steadfast.domain.config import RetryConfig
from steadfast.domain.errors import ConfigurationError, RetryExhaustedError
from steadfast.domain.models.retry_policy import RetryPolicy
from steadfast.infrastructure.backoff import backoff_schedule
from steadfast.infrastructure.config.config_manager import ConfigManager
from steadfast.infrastructure.llm.base import LLMProvider
from steadfast.infrastructure.llm.factory import create_provider
from steadfast.infrastructure.observers import LoggingAttemptObserver

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[BaseException] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def describe_failure(error: BaseException) -> str:
    """User-facing message: exhaustion and terminal errors need different advice"""
    if isinstance(error, RetryExhaustedError):
        return f"Service unavailable after {error.attempts_made} attempts, try again later ({error.last_error})"
    return f"Request rejected, check your input ({error})"


def _load_config(ctx: click.Context) -> ConfigManager:
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=ctx.obj.get("verbose", False), exc=e)


def _create_llm_provider(
    config_manager: ConfigManager,
    provider_override: Optional[str],
    policy: RetryPolicy,
    verbose: bool,
) -> LLMProvider:
    """Create LLM provider from config

    Args:
        config_manager: Configuration manager
        provider_override: Optional provider override from CLI
        policy: Retry policy the provider's requests run under
        verbose: Verbose mode for error reporting

    Returns:
        LLM provider instance
    """
    llm_config = config_manager.get_llm_config()
    provider_type = provider_override or llm_config.provider
    logger.info(f"Using LLM provider: {provider_type}")

    try:
        return create_provider(provider_type, llm_config.model_dump(exclude={"provider"}), policy)
    except ValueError as e:
        _die(str(e), verbose=verbose, exc=e)


def _output_generation_result(result: GenerationResult) -> None:
    for index, section in enumerate(result.sections):
        if section is None:
            click.echo(f"[section {index + 1} failed] {describe_failure(result.errors[index])}", err=True)
        else:
            click.echo(section)
            click.echo("")
    if not result.is_successful:
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .steadfast.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """Steadfast - resilient execution of flaky async operations"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option("--max-attempts", type=click.IntRange(min=1), help="Total attempts. Overrides config.")
@click.option("--base-delay", type=click.FloatRange(min=0, min_open=True), help="First retry delay (s).")
@click.option("--max-delay", type=click.FloatRange(min=0, min_open=True), help="Delay ceiling (s).")
@click.option("--jitter/--no-jitter", default=None, help="Randomize delays by +/- jitter fraction.")
@click.option("--seed", type=int, help="Random seed for reproducible jitter")
@click.pass_context
def backoff(
    ctx,
    max_attempts: Optional[int],
    base_delay: Optional[float],
    max_delay: Optional[float],
    jitter: Optional[bool],
    seed: Optional[int],
):
    """Print the delay schedule of the configured retry policy."""
    config_manager = _load_config(ctx)
    overrides = {
        "max_attempts": max_attempts,
        "base_delay": base_delay,
        "max_delay": max_delay,
        "use_jitter": jitter,
    }
    retry_values = config_manager.get_retry_config().model_dump()
    retry_values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        policy = RetryConfig.model_validate(retry_values).to_policy()
    except ValueError as e:
        _die(f"Invalid retry settings: {e}", verbose=ctx.obj.get("verbose", False), exc=e)

    rng = random.Random(seed) if seed is not None else None
    delays = backoff_schedule(policy, rng)
    click.echo(f"Attempts: {policy.max_attempts} (1 initial + {policy.max_retries} retries)")
    for index, delay in enumerate(delays):
        click.echo(f"Retry {index + 1}: wait {delay:.3f}s")
    click.echo(f"Total wait if every retry is used: {sum(delays):.3f}s")


@cli.command()
@click.argument("prompts", nargs=-1, required=True)
@click.option(
    "--provider",
    type=str,
    help="LLM provider to use (mock, openai). Overrides config.",
)
@click.pass_context
def generate(ctx, prompts: Tuple[str, ...], provider: Optional[str]):
    """Generate one section per PROMPT with retries and backoff."""
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)
    policy = config_manager.get_retry_config().to_policy(
        observer=LoggingAttemptObserver("LLM request", logger)
    )
    llm_provider = _create_llm_provider(config_manager, provider, policy, verbose)
    service = GenerationService(llm_provider)

    try:
        result = asyncio.run(service.generate_sections(list(prompts)))
    except click.ClickException:
        raise
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)

    _output_generation_result(result)


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
