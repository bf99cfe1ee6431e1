"""
Checklist Template Catalog

Area/item structure per inspection category, loaded from YAML (one file per
category). The engine itself is category-agnostic: it only ever sees the
AreaTemplate list the catalog hands out, and copies it into the new
inspection. Later template edits never touch existing inspections.

File format:
    category: gsh
    department: GSH
    areas:
      - area_name: ...
        area_order: 1
        items:
          - Plain description            # shorthand, defaults for the rest
          - descripcion: ...             # full form, any ItemTemplate field
            calif_editable: false
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import yaml
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import TemplateError
from app.schemas.inspection import AreaTemplate, validate_areas
from app.services.access_scope import canonical_department

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"


@dataclass(frozen=True)
class ChecklistTemplate:
    """Immutable checklist for one category."""
    category: str
    department: str
    areas: tuple[AreaTemplate, ...]

    @property
    def total_items(self) -> int:
        return sum(len(area.items) for area in self.areas)

    def build_areas(self) -> list[AreaTemplate]:
        """Fresh copies for a new inspection."""
        return [area.model_copy(deep=True) for area in self.areas]


class TemplateCatalog:
    """Category -> ChecklistTemplate, validated on load."""

    def __init__(self, templates_dir: Optional[str | Path] = None, departments: Sequence[str] = ()) -> None:
        self._dir = Path(templates_dir) if templates_dir else DEFAULT_TEMPLATES_DIR
        self._departments = tuple(departments)
        self._templates: dict[str, ChecklistTemplate] = {}
        self._loaded = False

    def load(self) -> None:
        """Load and validate every *.yaml file in the templates directory."""
        if not self._dir.is_dir():
            raise TemplateError(f"Templates directory not found: {self._dir}")

        templates: dict[str, ChecklistTemplate] = {}
        for path in sorted(self._dir.glob("*.yaml")):
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
            template = self._parse(raw, source=path.name)
            if template.category in templates:
                raise TemplateError(f"Duplicate template category '{template.category}' in {path.name}")
            templates[template.category] = template

        self._templates = templates
        self._loaded = True
        logger.info(f"Loaded {len(templates)} checklist templates from {self._dir}")

    def _parse(self, raw: dict, source: str) -> ChecklistTemplate:
        category = str(raw.get("category") or Path(source).stem).strip().lower()
        department = str(raw.get("department") or "").strip()
        if not department:
            raise TemplateError(f"{source}: missing department")
        if self._departments:
            canonical = canonical_department(department, self._departments)
            if canonical is None:
                raise TemplateError(f"{source}: unknown department '{department}'")
            department = canonical

        areas = []
        try:
            for area_def in raw.get("areas") or []:
                items = []
                for position, item_def in enumerate(area_def.get("items") or [], start=1):
                    if isinstance(item_def, str):
                        item_def = {"descripcion": item_def}
                    items.append({"item_order": position, **item_def})
                areas.append(AreaTemplate.model_validate({**area_def, "items": items}))
            validate_areas(areas)
        except (PydanticValidationError, ValueError) as e:
            raise TemplateError(f"{source}: {e}") from e

        return ChecklistTemplate(category=category, department=department, areas=tuple(areas))

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def get(self, category: str) -> ChecklistTemplate:
        self._ensure_loaded()
        key = category.strip().lower()
        if key not in self._templates:
            raise KeyError(category)
        return self._templates[key]

    def categories(self) -> list[ChecklistTemplate]:
        self._ensure_loaded()
        return [self._templates[key] for key in sorted(self._templates)]
