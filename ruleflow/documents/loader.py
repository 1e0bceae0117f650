"""YAML/JSON document loader for flows, rule sets, API mappings and UI schemas.

A bundle directory looks like::

    my_app/
        flow.yaml
        rules.yaml
        api_mappings/
            lookup_customer.yaml
        ui_schemas/
            start.yaml
            review.yaml
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from ruleflow.api_orchestrator.schemas import ApiMapping
from ruleflow.core.config import get_settings
from ruleflow.core.errors import DocumentLoadError
from ruleflow.flow.schemas import FlowSchema
from ruleflow.rules.schemas import RuleSet
from .schemas import ApplicationBundle

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = (".yaml", ".yml", ".json")

FLOW_FILE = "flow"
RULES_FILE = "rules"
API_MAPPINGS_DIR = "api_mappings"
UI_SCHEMAS_DIR = "ui_schemas"

ModelT = TypeVar("ModelT", bound=BaseModel)


def read_document(path: str | Path) -> Any:
    """Parse one YAML or JSON file."""
    path = Path(path)
    if not path.exists():
        raise DocumentLoadError(f"Document not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise DocumentLoadError(f"Cannot parse {path}: {e}") from e


def _parse(model: type[ModelT], content: Any, path: Path) -> ModelT:
    try:
        return model.model_validate(content)
    except ValidationError as e:
        raise DocumentLoadError(f"Invalid {model.__name__} in {path}: {e}") from e


def _find(directory: Path, stem: str) -> Path | None:
    for suffix in DOCUMENT_SUFFIXES:
        candidate = directory / f"{stem}{suffix}"
        if candidate.exists():
            return candidate
    return None


def _document_files(directory: Path) -> list[Path]:
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix in DOCUMENT_SUFFIXES)


class DocumentLoader:
    """Loads documents from files or an application bundle directory.

    With ``strict=False`` files in the mapping and UI schema directories that
    fail to load are skipped with a warning instead of raising.
    """

    def __init__(self, documents_dir: str | Path | None = None, strict: bool = True):
        self.documents_dir = Path(documents_dir or get_settings().documents_dir)
        self.strict = strict

    def _resolve(self, path: str | Path) -> Path:
        path = Path(path)
        return path if path.is_absolute() or path.exists() else self.documents_dir / path

    def load_flow(self, path: str | Path) -> FlowSchema:
        """Load a flow document."""
        path = self._resolve(path)
        return _parse(FlowSchema, read_document(path), path)

    def load_rule_set(self, path: str | Path) -> RuleSet:
        """Load a rule set; a bare list of rules is accepted as well."""
        path = self._resolve(path)
        content = read_document(path)
        if content is None:
            return RuleSet()
        if isinstance(content, list):
            content = {"rules": content}
        return _parse(RuleSet, content, path)

    def load_api_mappings(self, path: str | Path) -> dict[str, ApiMapping]:
        """Load API mappings keyed by ``apiId`` from a file or a directory.

        Each file holds one mapping or a list of mappings.
        """
        path = self._resolve(path)
        mappings: dict[str, ApiMapping] = {}

        def load(file: Path) -> None:
            content = read_document(file)
            items = content if isinstance(content, list) else [content]
            for item in items:
                mapping = _parse(ApiMapping, item, file)
                if mapping.api_id in mappings:
                    raise DocumentLoadError(f"Duplicate apiId '{mapping.api_id}' in {file}")
                mappings[mapping.api_id] = mapping

        self._load_each(path, load)
        return mappings

    def load_ui_schemas(self, path: str | Path) -> dict[str, dict[str, Any]]:
        """Load UI schemas keyed by ``pageId`` (the file stem when absent)."""
        path = self._resolve(path)
        schemas: dict[str, dict[str, Any]] = {}

        def load(file: Path) -> None:
            content = read_document(file)
            if not isinstance(content, dict):
                raise DocumentLoadError(f"UI schema in {file} must be an object")
            page_id = content.get("pageId") or file.stem
            schemas[page_id] = content

        self._load_each(path, load)
        return schemas

    def load_bundle(self, path: str | Path | None = None) -> ApplicationBundle:
        """Load a bundle directory; only the flow document is required."""
        directory = self._resolve(path) if path is not None else self.documents_dir
        if not directory.is_dir():
            raise DocumentLoadError(f"Bundle directory not found: {directory}")

        flow_path = _find(directory, FLOW_FILE)
        if flow_path is None:
            raise DocumentLoadError(f"No {FLOW_FILE}.yaml in {directory}")
        rules_path = _find(directory, RULES_FILE)

        bundle = ApplicationBundle(
            flow=self.load_flow(flow_path),
            rules=self.load_rule_set(rules_path) if rules_path else RuleSet(),
            api_mappings_by_id=(
                self.load_api_mappings(directory / API_MAPPINGS_DIR)
                if (directory / API_MAPPINGS_DIR).is_dir()
                else {}
            ),
            ui_schemas_by_id=(
                self.load_ui_schemas(directory / UI_SCHEMAS_DIR)
                if (directory / UI_SCHEMAS_DIR).is_dir()
                else {}
            ),
        )
        logger.info(
            "Loaded bundle %s: %d states, %d rules, %d API mappings, %d UI schemas",
            directory,
            len(bundle.flow.states),
            len(bundle.rules.rules),
            len(bundle.api_mappings_by_id),
            len(bundle.ui_schemas_by_id),
        )
        return bundle

    def _load_each(self, path: Path, load: Callable[[Path], None]) -> None:
        if path.is_file():
            load(path)
            return
        if not path.is_dir():
            raise DocumentLoadError(f"Document path not found: {path}")
        for file in _document_files(path):
            try:
                load(file)
            except DocumentLoadError as e:
                if self.strict:
                    raise
                logger.warning("Skipping %s: %s", file, e)
