"""
QueryRegistry - Explicit query registration pattern

Bounded Context: Query registration and dispatch
Responsibilities:
  - Register query handlers
  - Validate query existence before execution
  - Provide introspection (available_queries, get_help)

Threading: Thread-safe (uses lock for write operations)
Pattern: Registry with explicit registration
"""

from typing import Any, Callable, Dict, Set
import threading


QueryHandler = Callable[[Dict[str, Any]], Any]


class QueryNotAvailableError(Exception):
    """Raised when attempting to execute an unregistered query"""
    pass


class QueryRegistry:
    """
    Registry for transport queries with explicit registration.

    Key Features:
      - Fail-fast: Unknown queries rejected immediately
      - Introspection: Can query available queries at runtime
      - Self-Documenting: Each query has a description

    Thread Safety:
      - Uses lock for write operations (register)
      - Read operations are lock-free (dict reads)

    Example:
        registry = QueryRegistry()
        registry.register('health', lambda payload: service.health(), "Liveness check")

        try:
            result = registry.execute('health', {})
        except QueryNotAvailableError as e:
            print(f"Query not available: {e}")
    """

    def __init__(self):
        self._handlers: Dict[str, QueryHandler] = {}
        self._descriptions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, query: str, handler: QueryHandler, description: str) -> None:
        """
        Register a query with its handler function.

        Args:
            query: Query name (lowercase, no spaces)
            handler: Callable receiving the request payload, returning the result
            description: Human-readable description for help text

        Raises:
            ValueError: If query already registered (double registration)
        """
        with self._lock:
            if query in self._handlers:
                raise ValueError(f"Query '{query}' already registered")

            self._handlers[query] = handler
            self._descriptions[query] = description

    def execute(self, query: str, payload: Dict[str, Any]) -> Any:
        """
        Execute a registered query.

        Args:
            query: Query name to execute
            payload: Full request payload

        Returns:
            Handler result (JSON-compatible)

        Raises:
            QueryNotAvailableError: If query not registered
        """
        if query not in self._handlers:
            raise QueryNotAvailableError(
                f"Query '{query}' not available. "
                f"Available queries: {', '.join(sorted(self.available_queries))}"
            )

        return self._handlers[query](payload)

    def is_available(self, query: str) -> bool:
        return query in self._handlers

    @property
    def available_queries(self) -> Set[str]:
        """Snapshot of registered query names."""
        return set(self._handlers.keys())

    def get_help(self) -> Dict[str, str]:
        """Snapshot of {query: description}."""
        return dict(self._descriptions)

    def count(self) -> int:
        return len(self._handlers)
