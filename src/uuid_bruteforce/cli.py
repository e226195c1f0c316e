from typing import Optional

import click
from rich.console import Console

from uuid_bruteforce.candidates import candidate_factory, seeded_candidates
from uuid_bruteforce.config import (
    EXECUTOR_KINDS,
    PROGRESS_INTERVAL_SECONDS,
    STOP_GRACE_SECONDS,
    SearchConfig,
    available_parallelism,
)
from uuid_bruteforce.coordinator import SearchCoordinator, Summary
from uuid_bruteforce.executor import make_executor
from uuid_bruteforce.log import configure_logging
from uuid_bruteforce.oracle import Target
from uuid_bruteforce.ui import ConsoleDisplay, render_estimate
from uuid_bruteforce.worker import DEFAULT_BATCH_SIZE

ENVVAR_PREFIX = "UUID_BRUTEFORCE"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def planted_target(seed: int, position: int) -> Target:
    """A target whose secret is the given (1-based) candidate of worker 0's seeded stream."""
    stream = seeded_candidates(seed, 0)
    for _ in range(position - 1):
        next(stream)
    return Target.from_secret(next(stream))


def search(
    config: SearchConfig,
    *,
    target: Optional[Target] = None,
    console: Optional[Console] = None,
) -> Summary:
    """Run one search with the given configuration until a match or an interrupt."""
    coordinator = SearchCoordinator(
        config,
        make_executor(config.executor),
        ConsoleDisplay(console),
        target=target,
        candidate_factory=candidate_factory(config.seed),
    )
    return coordinator.run(config.worker_count)


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx: click.Context):
    """Demonstrate why brute forcing a UUID v5 derived from a UUID v4 is hopeless."""
    if ctx.invoked_subcommand is None:
        # No arguments: run the search, still honouring the environment.
        with run.make_context("run", [], parent=ctx) as run_ctx:
            run.invoke(run_ctx)


@cli.command()
@click.option(
    "--workers", "-w",
    type=click.IntRange(min=0),
    default=available_parallelism,
    envvar=f"{ENVVAR_PREFIX}_WORKERS",
    show_envvar=True,
    help="Number of search workers (default: CPU count).",
)
@click.option(
    "--batch-size", "-b",
    type=click.IntRange(min=1),
    default=DEFAULT_BATCH_SIZE,
    envvar=f"{ENVVAR_PREFIX}_BATCH_SIZE",
    show_envvar=True,
    help="Candidates each worker checks between progress reports.",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0, min_open=True),
    default=PROGRESS_INTERVAL_SECONDS,
    envvar=f"{ENVVAR_PREFIX}_INTERVAL",
    show_envvar=True,
    help="Seconds between progress line updates.",
)
@click.option(
    "--grace",
    type=click.FloatRange(min=0),
    default=STOP_GRACE_SECONDS,
    envvar=f"{ENVVAR_PREFIX}_GRACE",
    show_envvar=True,
    help="Seconds to wait for workers to stop before terminating them.",
)
@click.option(
    "--executor", "-e",
    type=click.Choice(EXECUTOR_KINDS),
    default="process",
    envvar=f"{ENVVAR_PREFIX}_EXECUTOR",
    show_envvar=True,
    help="Run workers as processes or threads.",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    envvar=f"{ENVVAR_PREFIX}_SEED",
    show_envvar=True,
    help="Seed the candidate streams for a reproducible run.",
)
@click.option(
    "--plant-at",
    type=click.IntRange(min=1),
    default=None,
    envvar=f"{ENVVAR_PREFIX}_PLANT_AT",
    help="Demo: hide the secret at this position of worker 0's seeded stream (needs --seed).",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    envvar=f"{ENVVAR_PREFIX}_LOG_LEVEL",
    show_envvar=True,
)
def run(
    workers: int,
    batch_size: int,
    interval: float,
    grace: float,
    executor: str,
    seed: Optional[int],
    plant_at: Optional[int],
    log_level: str,
):
    """Search for the private UUID behind a random public UUID."""
    configure_logging(log_level)

    if plant_at is not None and seed is None:
        raise click.UsageError("--plant-at needs --seed")

    try:
        config = SearchConfig(
            worker_count=workers,
            batch_size=batch_size,
            progress_interval=interval,
            stop_grace=grace,
            executor=executor,
            seed=seed,
        )
    except ValueError as e:
        raise click.UsageError(str(e))

    target = planted_target(seed, plant_at) if plant_at is not None else None
    search(config, target=target)


@cli.command()
@click.option(
    "--workers", "-w",
    type=click.IntRange(min=0),
    default=available_parallelism,
    envvar=f"{ENVVAR_PREFIX}_WORKERS",
    show_envvar=True,
)
def estimate(workers: int):
    """Print how long exhausting the keyspace would take, then exit."""
    Console().print(render_estimate(workers))


if __name__ == "__main__":
    cli()
