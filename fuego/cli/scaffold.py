"""Generation of entity, controller and service files for a new domain."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from .templates import render_template

PathLike = Union[str, Path]


def create_entity_file(
    entity_name: str,
    template_name: str,
    output_name: str,
    base_dir: PathLike = ".",
) -> str:
    """Render a template into ``domains/<entity_name>/<output_name>`` and return its content."""
    domain_dir = Path(base_dir) / "domains" / entity_name
    if not domain_dir.exists():
        domain_dir.mkdir(mode=0o755, parents=True)
    content = render_template(template_name, entity_name)
    (domain_dir / output_name).write_text(content, encoding="utf-8")
    return content


def _domain_file(base_dir: PathLike, entity_name: str, output_name: str) -> Path:
    return Path(base_dir) / "domains" / entity_name / output_name


def service_command(entity_name: Optional[str] = None, base_dir: PathLike = ".") -> list[Path]:
    """Create the entity and service files; returns the written paths."""
    if not entity_name:
        entity_name = "newController"
        print("Note: You can add an entity name as an argument. Example: `fuego service books`")

    outputs = [("entity.py", f"{entity_name}.py"), ("service.py", f"{entity_name}_service.py")]
    written = []
    for template_name, output_name in outputs:
        create_entity_file(entity_name, template_name, output_name, base_dir)
        written.append(_domain_file(base_dir, entity_name, output_name))

    print(f"🔥 Service {entity_name} created successfully")
    return written


def controller_command(
    entity_name: Optional[str] = None,
    with_service: bool = False,
    base_dir: PathLike = ".",
) -> list[Path]:
    """Create the entity and controller files, and the service too if asked."""
    written: list[Path] = []
    if with_service:
        written.extend(service_command(entity_name, base_dir))

    if not entity_name:
        entity_name = "newEntity"
        print("Note: You can add a controller name as an argument. Example: `fuego controller books`")

    outputs = [("entity.py", f"{entity_name}.py"), ("controller.py", f"{entity_name}_controller.py")]
    for template_name, output_name in outputs:
        create_entity_file(entity_name, template_name, output_name, base_dir)
        path = _domain_file(base_dir, entity_name, output_name)
        if path not in written:
            written.append(path)

    print(f"🔥 Controller {entity_name} created successfully")
    return written