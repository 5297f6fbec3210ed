"""Ownership policy.

An `Ownership` answers one question for a resource family: may the
current principal act on the resource with this key? It is configured
with how to fetch the resource and how to reach the record that names
its owner:

- direct ownership: the resource itself carries the owner field
  (profiles, personalization records);
- transitive ownership: the owner lives on a parent record that has to
  be fetched first (recommendations hang off a personalization record).

Existence is always checked before ownership. A missing resource, or a
resource whose parent cannot be found, is reported as 404 with the same
message, whoever asks.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import AccessDenied, NotFound
from .pipeline import Halt, Proceed, RequestContext, Stage, StageResult

Fetch = Callable[[RequestContext, Any], Optional[Any]]


def _same_record(ctx: RequestContext, resource: Any) -> Any:
    return resource


def holds(principal_id: Optional[str], owner_id: Optional[str]) -> bool:
    """An ownership assertion holds iff both ids are present and equal."""
    return principal_id is not None and owner_id is not None and str(principal_id) == str(owner_id)


@dataclass(frozen=True)
class Ownership:
    fetch: Fetch
    not_found: str
    denied: str
    owner_record: Fetch = _same_record
    owner_field: str = "user_id"

    def evaluate(self, ctx: RequestContext, key: Any) -> StageResult:
        resource = self.fetch(ctx, key)
        if resource is None:
            return Halt(NotFound(self.not_found))
        owner = self.owner_record(ctx, resource)
        if owner is None:
            return Halt(NotFound(self.not_found))
        principal_id = ctx.principal.id if ctx.principal else None
        if not holds(principal_id, getattr(owner, self.owner_field, None)):
            return Halt(AccessDenied(self.denied))
        return Proceed(resource)

    def stage(self, key: Any, bind: str) -> Stage:
        """Pipeline stage that checks `key` and binds the resource as `bind`."""
        def check(ctx: RequestContext) -> StageResult:
            result = self.evaluate(ctx, key)
            if isinstance(result, Proceed):
                return Proceed(result.value, bind=bind)
            return result
        return check

    def through(self, fetch_child: Fetch, parent_key_field: str, not_found: str, denied: str) -> "Ownership":
        """Ownership for children whose owner is this policy's resource.

        The child is fetched with `fetch_child`, its parent with this
        policy's `fetch` using the child's `parent_key_field`.
        """
        parent_fetch = self.fetch

        def parent_of(ctx: RequestContext, child: Any) -> Optional[Any]:
            return parent_fetch(ctx, getattr(child, parent_key_field))

        return Ownership(
            fetch=fetch_child,
            not_found=not_found,
            denied=denied,
            owner_record=parent_of,
            owner_field=self.owner_field,
        )
