"""Code templates used to scaffold a new entity domain.

Templates use ``newEntity`` as a placeholder for the entity name and
``NewEntity`` for its title-cased form.
"""

from __future__ import annotations

import re

PLACEHOLDER = "newEntity"
TITLED_PLACEHOLDER = "NewEntity"

_ENTITY = '''"""Entities of the newEntity domain."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass
class NewEntity:
    id: str
    name: str


@dataclass
class NewEntityCreate:
    name: str = ""


@dataclass
class NewEntityUpdate:
    name: str = ""


class NewEntityService(Protocol):
    def get_newEntity(self, entity_id: str) -> NewEntity: ...

    def create_newEntity(self, data: NewEntityCreate) -> NewEntity: ...

    def get_all_newEntity(self) -> list[NewEntity]: ...

    def update_newEntity(self, entity_id: str, data: NewEntityUpdate) -> NewEntity: ...

    def delete_newEntity(self, entity_id: str) -> Any: ...
'''

_CONTROLLER = '''"""HTTP handlers of the newEntity domain."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from fuego.context import Context

from .newEntity import NewEntity, NewEntityCreate, NewEntityService, NewEntityUpdate

Route = tuple[str, str, Callable[[Context], Any], Any]


@dataclass
class NewEntityResources:
    newEntity_service: NewEntityService

    def routes(self, prefix: str = "") -> list[Route]:
        """Routes as (method, path, handler, body type)."""
        base = prefix + "/newEntity"
        return [
            ("GET", base + "/", self.get_all_newEntity, None),
            ("POST", base + "/", self.post_newEntity, NewEntityCreate),
            ("GET", base + "/{id}", self.get_newEntity, None),
            ("PUT", base + "/{id}", self.put_newEntity, NewEntityUpdate),
            ("DELETE", base + "/{id}", self.delete_newEntity, None),
        ]

    def get_all_newEntity(self, ctx: Context) -> list[NewEntity]:
        return self.newEntity_service.get_all_newEntity()

    def post_newEntity(self, ctx: Context) -> NewEntity:
        return self.newEntity_service.create_newEntity(ctx.body())

    def get_newEntity(self, ctx: Context) -> NewEntity:
        return self.newEntity_service.get_newEntity(ctx.path_param("id"))

    def put_newEntity(self, ctx: Context) -> NewEntity:
        entity_id = ctx.path_param("id")
        return self.newEntity_service.update_newEntity(entity_id, ctx.body())

    def delete_newEntity(self, ctx: Context) -> Any:
        return self.newEntity_service.delete_newEntity(ctx.path_param("id"))
'''

_SERVICE = '''"""In-memory service of the newEntity domain."""

from __future__ import annotations

import threading
import time
from typing import Any

from fuego.errors import NotFoundError

from .newEntity import NewEntity, NewEntityCreate, NewEntityUpdate


class NewEntityServiceImpl:
    """Keeps NewEntity records in a dictionary."""

    def __init__(self) -> None:
        self._repository: dict[str, NewEntity] = {}
        self._lock = threading.Lock()

    def _lookup(self, entity_id: str) -> NewEntity:
        try:
            return self._repository[entity_id]
        except KeyError:
            raise NotFoundError(title="NewEntity not found with id " + entity_id) from None

    def get_newEntity(self, entity_id: str) -> NewEntity:
        with self._lock:
            return self._lookup(entity_id)

    def create_newEntity(self, data: NewEntityCreate) -> NewEntity:
        with self._lock:
            entity_id = str(time.time_ns())
            entity = NewEntity(id=entity_id, name=data.name)
            self._repository[entity_id] = entity
            return entity

    def get_all_newEntity(self) -> list[NewEntity]:
        with self._lock:
            return list(self._repository.values())

    def update_newEntity(self, entity_id: str, data: NewEntityUpdate) -> NewEntity:
        with self._lock:
            entity = self._lookup(entity_id)
            if data.name:
                entity = NewEntity(id=entity.id, name=data.name)
            self._repository[entity_id] = entity
            return entity

    def delete_newEntity(self, entity_id: str) -> Any:
        with self._lock:
            self._lookup(entity_id)
            del self._repository[entity_id]
            return "deleted"


def new_newEntity_service() -> NewEntityServiceImpl:
    return NewEntityServiceImpl()
'''

_TEMPLATES = {
    "controller.py": _CONTROLLER,
    "entity.py": _ENTITY,
    "service.py": _SERVICE,
}

_WORD = re.compile(r"\w+")


def _title(name: str) -> str:
    return _WORD.sub(lambda m: m.group(0).capitalize(), name)


def template_names() -> list[str]:
    """Names of the available templates, sorted."""
    return sorted(_TEMPLATES)


def render_template(name: str, entity_name: str) -> str:
    """Fill template ``name`` for ``entity_name``; unknown names raise FileNotFoundError."""
    try:
        content = _TEMPLATES[name]
    except KeyError:
        raise FileNotFoundError(f"template {name!r} does not exist") from None
    content = content.replace(PLACEHOLDER, entity_name)
    return content.replace(TITLED_PLACEHOLDER, _title(entity_name))