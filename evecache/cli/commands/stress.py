"""Concurrent load CLI command for the identity cache."""

import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from evecache.core.cache import IdentityCache, RegionMap
from evecache.core.cache.models import CacheConfig
from evecache.models.base import EveBaseModel


logger = logging.getLogger(__name__)
console = Console()


class ReferenceValue(EveBaseModel):
    """Synthetic reference row used by the load test."""

    id: int
    name: str

    @property
    def cache_key(self) -> int:
        return self.id


class Category(ReferenceValue):
    pass


class Group(ReferenceValue):
    pass


class ItemType(ReferenceValue):
    pass


class StationType(ItemType):
    pass


WORKLOAD_TYPES: tuple[type[ReferenceValue], ...] = (Category, Group, ItemType, StationType)


def build_workload_region_map() -> RegionMap:
    """Region table for the load test; StationType shares the ItemType region."""
    return RegionMap.from_table(
        {Category: None, Group: None, ItemType: None},
        parents={StationType: ItemType},
    )


@dataclass
class StressResult:
    """Outcome of one load test run."""

    factory_calls: int
    distinct_keys: int
    identity_violations: int
    elapsed_seconds: float


def run_stress(
    cache: IdentityCache,
    threads: int,
    ids: int,
    rounds: int,
    permanent: bool = False,
    seed: int = 0,
) -> StressResult:
    """Hammer ``cache`` with concurrent get-or-add calls.

    Every thread walks the same id range in its own shuffled order and keeps
    strong references to what it received, so reclaimable entries stay alive
    for the duration of the run.
    """
    calls_lock = threading.Lock()
    factory_calls = 0

    def make_factory(value_type: type[ReferenceValue], value_id: int) -> Any:
        def factory() -> ReferenceValue:
            nonlocal factory_calls
            with calls_lock:
                factory_calls += 1
            return value_type(id=value_id, name=f"{value_type.__name__} {value_id}")

        return factory

    def worker(
        worker_id: int,
    ) -> tuple[dict[tuple[type, int], int], dict[tuple[type, int], ReferenceValue]]:
        rng = random.Random(seed + worker_id)
        order = list(range(ids))
        seen: dict[tuple[type, int], ReferenceValue] = {}
        for _ in range(rounds):
            rng.shuffle(order)
            for value_id in order:
                value_type = WORKLOAD_TYPES[value_id % len(WORKLOAD_TYPES)]
                seen[(value_type, value_id)] = cache.get_or_add(
                    value_type, value_id, make_factory(value_type, value_id), permanent
                )
        return {key: id(value) for key, value in seen.items()}, seen

    start = time.perf_counter()
    with ThreadPoolExecutor(max_workers=threads) as executor:
        results = list(executor.map(worker, range(threads)))
    elapsed = time.perf_counter() - start

    identities: dict[tuple[type, int], set[int]] = {}
    for identity_map, _kept in results:
        for key, identity in identity_map.items():
            identities.setdefault(key, set()).add(identity)

    violations = sum(1 for values in identities.values() if len(values) > 1)
    logger.debug(
        "Stress run finished: %d factory calls, %d violations", factory_calls, violations
    )
    return StressResult(
        factory_calls=factory_calls,
        distinct_keys=len(identities),
        identity_violations=violations,
        elapsed_seconds=elapsed,
    )


def stress(
    threads: Annotated[
        int, typer.Option("-t", "--threads", min=1, help="Number of worker threads")
    ] = 8,
    ids: Annotated[
        int, typer.Option("-n", "--ids", min=1, help="Distinct identifiers per run")
    ] = 1000,
    rounds: Annotated[
        int, typer.Option("-r", "--rounds", min=1, help="Passes over the id range")
    ] = 5,
    permanent: Annotated[
        bool, typer.Option("--permanent", help="Store entries as permanent")
    ] = False,
    seed: Annotated[int, typer.Option("--seed", help="Shuffle seed")] = 0,
) -> None:
    """Run a concurrent get-or-add workload and show cache statistics."""
    cache = IdentityCache(
        build_workload_region_map(), CacheConfig(clean_interval_seconds=None)
    )
    result = run_stress(cache, threads, ids, rounds, permanent=permanent, seed=seed)
    stats = cache.get_stats()

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Hits", str(stats.hits), "Lookups served from the cache")
    table.add_row("Misses", str(stats.misses), "Lookups that ran a factory")
    table.add_row("Writes", str(stats.writes), "Entries stored")
    table.add_row("Evictions", str(stats.evictions), "Entries swept as dead")
    table.add_row("Total Requests", str(stats.total_requests), "Hits + misses")
    table.add_row("Hit Rate", f"{stats.hit_rate:.1f}%", "Cache effectiveness")
    table.add_row(
        "Factory Calls",
        str(result.factory_calls),
        f"{result.distinct_keys} distinct keys",
    )
    table.add_row(
        "Identity Violations",
        str(result.identity_violations),
        "Keys that produced more than one instance",
    )
    table.add_row("Regions", str(cache.locks.region_count), "Region locks created")
    table.add_row("Elapsed", f"{result.elapsed_seconds:.3f}s", f"{threads} threads")

    console.print("[bold]Identity Cache Load Test[/bold]")
    console.print(table)

    if result.identity_violations or result.factory_calls != result.distinct_keys:
        console.print("[red]Identity map invariant violated[/red]")
        raise typer.Exit(1)


def register_commands(app: typer.Typer) -> None:
    """Register the stress command with the main app."""
    app.command(name="stress")(stress)
