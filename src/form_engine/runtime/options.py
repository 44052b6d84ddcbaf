"""Remote option lists for fetch-backed choice fields.

Fields of kind select-fetch / multiselect-fetch name a remote endpoint.
OptionLoader dispatches one fetch per field in parallel, keeps at most
one request outstanding per field, and isolates failures: a failing
field gets an empty list and a logged error while its siblings load
normally.

Non-empty results are cached per (field name, schema version) in an
explicit OptionCache owned by the caller. Cancelling the loader bumps
its generation so responses that arrive afterwards are discarded.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from form_engine.errors import FetchError
from form_engine.schemas.form_schema import Option
from form_engine.services.interfaces import OptionSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchSource:
    """Where a field's options come from and how items map to options.

    Attributes:
        endpoint: Explicit endpoint; wins over ``fetch_key``.
        fetch_key: Key into the renderer's ``api_endpoints`` mapping.
        value_key: Item key holding the option value.
        label_key: Item key holding the option label.
        transform: Optional ``item -> {"value", "label"}`` (or Option) mapping.
    """

    endpoint: Optional[str] = None
    fetch_key: Optional[str] = None
    value_key: str = "id"
    label_key: str = "name"
    transform: Optional[Callable[[Dict[str, Any]], Any]] = None

    def resolve_endpoint(self, api_endpoints: Mapping[str, str]) -> Optional[str]:
        if self.endpoint:
            return self.endpoint
        if self.fetch_key:
            return api_endpoints.get(self.fetch_key)
        return None

    def to_options(self, items: List[Dict[str, Any]]) -> List[Option]:
        """Map raw items to options, skipping items without a value."""
        options: List[Option] = []
        used_ids = set()
        for item in items:
            if self.transform is not None:
                mapped = self.transform(item)
                if isinstance(mapped, Option):
                    value, label = mapped.value, mapped.label
                else:
                    value, label = mapped.get("value"), mapped.get("label")
            else:
                value = item.get(self.value_key, item.get("id"))
                label = item.get(self.label_key, item.get("name"))

            if value is None or value == "":
                logger.warning(f"Skipping option item without a value: {item!r}")
                continue

            option_id = str(value)
            suffix = 2
            while option_id in used_ids:
                option_id = f"{value}_{suffix}"
                suffix += 1
            used_ids.add(option_id)
            options.append(Option(id=option_id, value=str(value), label=str(label if label is not None else value)))
        return options


class OptionCache:
    """Fetched options keyed by (field name, schema version)."""

    def __init__(self):
        self._entries: Dict[Tuple[str, str], List[Option]] = {}

    def get(self, field_name: str, schema_version: str) -> Optional[List[Option]]:
        options = self._entries.get((field_name, schema_version))
        if options is None:
            return None
        return [option.model_copy() for option in options]

    def put(self, field_name: str, schema_version: str, options: List[Option]) -> None:
        if options:
            self._entries[(field_name, schema_version)] = [option.model_copy() for option in options]

    def invalidate(self, schema_version: Optional[str] = None) -> None:
        """Drop entries of one schema version, or everything."""
        if schema_version is None:
            self._entries.clear()
            return
        for key in [key for key in self._entries if key[1] == schema_version]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


class OptionLoader:
    """Parallel, failure-isolated option fetching for one renderer.

    Args:
        source: Option-source collaborator (None disables fetching).
        cache: Shared OptionCache.
        api_endpoints: ``fetch_key -> endpoint`` mapping.
        concurrency: Maximum simultaneous requests.
    """

    def __init__(
        self,
        source: Optional[OptionSource],
        *,
        cache: OptionCache,
        api_endpoints: Optional[Mapping[str, str]] = None,
        concurrency: int = 8,
    ):
        self.source = source
        self.cache = cache
        self.api_endpoints = dict(api_endpoints or {})
        self.generation = 0
        self._semaphore = asyncio.Semaphore(concurrency)
        self._tasks: Dict[str, "asyncio.Task[List[Option]]"] = {}

    @property
    def pending(self) -> FrozenSet[str]:
        return frozenset(name for name, task in self._tasks.items() if not task.done())

    async def load(self, sources: Mapping[str, FetchSource], schema_version: str) -> Dict[str, List[Option]]:
        """Load options for every field in ``sources``.

        Returns:
            ``field name -> options`` for this generation; empty when the
            loader was cancelled while waiting.
        """
        generation = self.generation
        results: Dict[str, List[Option]] = {}
        waiting: Dict[str, "asyncio.Task[List[Option]]"] = {}

        for name, fetch_source in sources.items():
            cached = self.cache.get(name, schema_version)
            if cached:
                results[name] = cached
                continue
            task = self._tasks.get(name)
            if task is None or task.done():
                task = asyncio.create_task(self._fetch_one(name, fetch_source))
                self._tasks[name] = task
            waiting[name] = task

        if waiting:
            outcomes = await asyncio.gather(*waiting.values(), return_exceptions=True)
            for (name, task), outcome in zip(waiting.items(), outcomes):
                if self._tasks.get(name) is task:
                    del self._tasks[name]
                if generation != self.generation or isinstance(outcome, asyncio.CancelledError):
                    logger.debug(f"Discarding stale options for '{name}'")
                    continue
                if isinstance(outcome, BaseException):
                    logger.error(f"Error fetching options for {name}: {outcome}")
                    outcome = []
                self.cache.put(name, schema_version, outcome)
                results[name] = outcome

        if generation != self.generation:
            return {}
        return results

    def cancel(self) -> None:
        """Cancel in-flight fetches and ignore any late responses."""
        self.generation += 1
        for task in self._tasks.values():
            if not task.done():
                task.cancel()
        self._tasks.clear()

    async def _fetch_one(self, name: str, fetch_source: FetchSource) -> List[Option]:
        endpoint = fetch_source.resolve_endpoint(self.api_endpoints)
        if not endpoint:
            logger.warning(f"No option endpoint configured for field '{name}'")
            return []
        if self.source is None:
            logger.warning(f"No option source available for field '{name}'")
            return []

        async with self._semaphore:
            try:
                items = await self.source.fetch_items(endpoint)
                if not isinstance(items, list):
                    raise FetchError(f"expected a list from {endpoint}", field_name=name)
                options = fetch_source.to_options(items)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                error = e if isinstance(e, FetchError) else FetchError(str(e), field_name=name)
                logger.error(f"Error fetching options for {name}: {error}")
                return []

        logger.debug(f"Fetched {len(options)} options for '{name}'")
        return options
