"""Router binding primitive."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import APIRouter, FastAPI


@dataclass(frozen=True)
class RouterBinding:
    router: APIRouter
    prefix: str = ""
    tags: tuple[str, ...] = ()

    def include(self, app: FastAPI) -> None:
        app.include_router(self.router, prefix=self.prefix, tags=list(self.tags))
