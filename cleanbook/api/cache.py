"""Cache-Control policies for API responses."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Response


@dataclass(frozen=True)
class CachePolicy:
    max_age: Optional[int] = None
    stale_while_revalidate: Optional[int] = None
    visibility: Optional[str] = None  # 'public' or 'private'
    must_revalidate: bool = False
    no_cache: bool = False
    no_store: bool = False

    def header(self) -> str:
        if self.no_store:
            return "no-store"
        if self.no_cache:
            return "no-cache"

        directives = []
        if self.visibility:
            directives.append(self.visibility)
        if self.max_age is not None:
            directives.append(f"max-age={self.max_age}")
        if self.stale_while_revalidate is not None:
            directives.append(f"stale-while-revalidate={self.stale_while_revalidate}")
        if self.must_revalidate:
            directives.append("must-revalidate")
        return ", ".join(directives)


# Dynamic or user-specific data
NO_STORE = CachePolicy(no_store=True)

# User-specific data the browser may keep briefly
PRIVATE = CachePolicy(visibility="private", max_age=300, must_revalidate=True)


def apply_cache_policy(response: Response, policy: CachePolicy) -> None:
    response.headers["Cache-Control"] = policy.header()
