# Bonsai - OpenBIM Blender Add-on
# Copyright (C) 2025 Your Engineering Firm
#
# This file is part of Bonsai.
#
# Bonsai is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Qualified Path: search_sets/engine.py

Classification Engine
---------------------
Orchestrates discipline classification, property discovery and saved set
materialization against a host.

Usage:
    from search_sets import ClassificationEngine
    from search_sets.ifc_host import IfcSearchSetHost

    host = IfcSearchSetHost(["Tower_ARCH_01.ifc", "Tower_STRC_01.ifc"], "sets.db")
    engine = ClassificationEngine(host)

    engine.build_disciplines()
    engine.build_attribute_sets("Category", engine.discipline_names)

    engine.scan_properties(["ARCH"])
    engine.build_custom_sets("Pset_WallCommon", "FireRating", ["ARCH"])

Every operation runs to completion on the caller's thread. One engine must
not run two operations at once; a second call raises OperationInProgress.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from .classifier import PatternClassifier
from .discovery import (
    SCAN_MAX_NODES_PER_ROOT,
    SCAN_MAX_ROOTS,
    PropertyCatalog,
    PropertyValueDiscoverer,
)
from .errors import (
    DiscoveryError,
    DisciplinesNotBuilt,
    NoSetsCreated,
    NoValuesDiscovered,
    OperationInProgress,
    SetCreationFailure,
    ValidationError,
)
from .hierarchy import (
    CLASH_SETS_FOLDER,
    CUSTOM_SETS_FOLDER,
    DISCIPLINES_FOLDER,
    HierarchyBuilder,
    LeafPolicy,
)
from .host import SearchSetHost
from .model import DisciplineDefinition, FolderNode
from .properties import SetParameter
from .query import QueryBuilder
from .traversal import CancellationToken, SubtreeWalker


class EngineState(Enum):
    IDLE = "idle"
    DISCIPLINES_BUILDING = "disciplines_building"
    DISCIPLINES_READY = "disciplines_ready"
    ELEMENT_SETS_BUILDING = "element_sets_building"
    ELEMENT_SETS_READY = "element_sets_ready"
    PROPERTIES_SCANNING = "properties_scanning"
    PROPERTIES_READY = "properties_ready"
    CUSTOM_SETS_BUILDING = "custom_sets_building"
    CUSTOM_SETS_READY = "custom_sets_ready"

    @property
    def is_running(self) -> bool:
        return self in (
            EngineState.DISCIPLINES_BUILDING,
            EngineState.ELEMENT_SETS_BUILDING,
            EngineState.PROPERTIES_SCANNING,
            EngineState.CUSTOM_SETS_BUILDING,
        )


@dataclass
class OperationSummary:
    """Outcome of one engine operation"""
    operation: str
    created: int = 0
    disciplines: Dict[str, int] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)
    catalog: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "operation": self.operation,
            "created": self.created,
            "disciplines": dict(self.disciplines),
            "skipped": list(self.skipped),
            "diagnostics": list(self.diagnostics),
            "catalog": {k: list(v) for k, v in self.catalog.items()},
        }


class EngineContext:
    """Caches owned by one engine: discipline registry and property catalog"""

    def __init__(self):
        self.registry: Dict[str, DisciplineDefinition] = {}
        self.catalog = PropertyCatalog()

    def reset(self) -> None:
        self.registry.clear()
        self.catalog.clear()


class ClassificationEngine:
    """Discipline, element set and custom set creation for one host"""

    def __init__(self, host: SearchSetHost,
                 patterns: Optional[Sequence[str]] = None,
                 leaf_policy: LeafPolicy = LeafPolicy.APPEND,
                 scan_max_roots: Optional[int] = SCAN_MAX_ROOTS,
                 scan_max_nodes_per_root: Optional[int] = SCAN_MAX_NODES_PER_ROOT,
                 logger: Optional[logging.Logger] = None):
        self.host = host
        self.logger = logger or self._setup_logging()
        self.classifier = PatternClassifier(patterns)
        self.hierarchy = HierarchyBuilder(leaf_policy)
        self.discoverer = PropertyValueDiscoverer(
            SubtreeWalker(host.get_children), host.get_property_categories
        )
        self.scan_max_roots = scan_max_roots
        self.scan_max_nodes_per_root = scan_max_nodes_per_root

        self.context = EngineContext()
        self.state = EngineState.IDLE
        self.refresh()

    def _setup_logging(self) -> logging.Logger:
        """Configure logging"""
        logger = logging.getLogger('SearchSetEngine')
        logger.setLevel(logging.INFO)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter('%(name)s - %(levelname)s - %(message)s')
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def discipline_names(self) -> List[str]:
        return sorted(self.context.registry)

    @property
    def property_catalog(self) -> Dict[str, List[str]]:
        return self.context.catalog.as_dict()

    def reset(self) -> None:
        """Drop cached disciplines and scanned properties"""
        if self.state.is_running:
            raise OperationInProgress(f"Cannot reset while {self.state.value}")
        self.context.reset()
        self.state = EngineState.IDLE

    def refresh(self) -> List[str]:
        """
        Rebuild the discipline registry from the saved discipline folder

        Returns:
            Sorted discipline names now available for scoping
        """
        registry = self.context.registry
        registry.clear()

        root = HierarchyBuilder.root(self.host.list_persisted_top_level_nodes())
        folder = HierarchyBuilder.find_folder(root, DISCIPLINES_FOLDER)
        if folder is not None:
            for named_set in folder.sets():
                registry[named_set.name] = DisciplineDefinition(named_set.name, named_set.query)

        if not self.state.is_running:
            self.state = EngineState.DISCIPLINES_READY if registry else EngineState.IDLE
        return self.discipline_names

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def build_disciplines(self, cancel_token: Optional[CancellationToken] = None) -> OperationSummary:
        """
        Classify root elements and save one discipline set per discipline

        Raises:
            NoDisciplinesFound: no root element name matches a pattern
            DiscoveryError: the saved discipline folder could not be read back
        """
        summary = OperationSummary("disciplines")

        with self._running(EngineState.DISCIPLINES_BUILDING, EngineState.DISCIPLINES_READY,
                           failed=EngineState.IDLE):
            self.logger.info("Creating discipline search sets...")
            self.context.registry.clear()

            roots = self.host.list_root_elements()
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            definitions = self.classifier.classify(roots)
            classified = {d.name for d in definitions}

            root = HierarchyBuilder.root(self.host.list_persisted_top_level_nodes())
            folder = HierarchyBuilder.find_folder(root, DISCIPLINES_FOLDER) or FolderNode(DISCIPLINES_FOLDER)

            # Sets for disciplines no longer present in the models are dropped
            stale = [s.name for s in folder.sets() if s.name not in classified]
            if stale:
                self.logger.info(f"Removing discipline search sets no longer found: {', '.join(stale)}")
                folder.children = [c for c in folder.children
                                   if c.is_group or c.name in classified]

            for definition in definitions:
                # Discipline queries are deterministic, so re-runs update in place
                self.hierarchy.add_leaf(folder, definition.name, definition.query,
                                        policy=LeafPolicy.REPLACE)
                summary.disciplines[definition.name] = 1

            self.host.persist(folder)

            self.refresh()
            for name in list(self.context.registry):
                if name not in classified:
                    del self.context.registry[name]
            missing = [d.name for d in definitions if d.name not in self.context.registry]
            if missing:
                raise DiscoveryError(f"Discipline sets were not saved: {', '.join(missing)}")

            summary.created = len(definitions)
            self.logger.info(f"✓ Created {summary.created} discipline search sets: "
                             f"{', '.join(summary.disciplines)}")

        return summary

    def build_attribute_sets(self, parameter, selected_disciplines: Iterable[str],
                             cancel_token: Optional[CancellationToken] = None) -> OperationSummary:
        """
        Save one set per distinct value of a predefined parameter, per discipline

        Args:
            parameter: SetParameter or its name, e.g. "Category" or "SystemName"
            selected_disciplines: Discipline names to process
            cancel_token: Optional cancellation token

        Raises:
            ValidationError: unknown parameter or empty selection
            DisciplinesNotBuilt: discipline sets do not exist yet
            NoValuesDiscovered: no value was found in any selected discipline
            NoSetsCreated: values were found but every set failed
        """
        with self._running(EngineState.ELEMENT_SETS_BUILDING, EngineState.ELEMENT_SETS_READY):
            mapping = SetParameter.parse(parameter).mapping
            return self._build_value_sets("element_sets", CLASH_SETS_FOLDER,
                                          mapping.category, mapping.attribute,
                                          selected_disciplines, cancel_token)

    def scan_properties(self, selected_disciplines: Iterable[str],
                        cancel_token: Optional[CancellationToken] = None) -> OperationSummary:
        """
        Sample the selected disciplines and rebuild the property catalog

        Sampling is capped by ``scan_max_roots`` and ``scan_max_nodes_per_root``.
        """
        summary = OperationSummary("scan")

        with self._running(EngineState.PROPERTIES_SCANNING, EngineState.PROPERTIES_READY):
            selected = self._validate_selection(selected_disciplines)
            self.context.catalog.clear()

            for discipline in selected:
                definition = self.context.registry.get(discipline)
                if definition is None:
                    self._skip_unknown(discipline, summary)
                    continue

                elements = self.host.execute_query(definition.query, cancel_token)
                self.discoverer.discover_catalog(
                    elements,
                    max_roots=self.scan_max_roots,
                    per_root_limit=self.scan_max_nodes_per_root,
                    catalog=self.context.catalog,
                    cancel_token=cancel_token,
                )
                self._collect_access_failures(summary)
                summary.disciplines[discipline] = len(elements)

            summary.catalog = self.context.catalog.as_dict()
            summary.created = len(summary.catalog)
            self.logger.info(f"✓ Properties scanned: {summary.created} categories")

        return summary

    def build_custom_sets(self, category: str, attribute: str,
                          selected_disciplines: Iterable[str],
                          cancel_token: Optional[CancellationToken] = None) -> OperationSummary:
        """
        Save one set per distinct value of a user-chosen property, per discipline

        Raises:
            ValidationError: missing category/attribute or empty selection
            DisciplinesNotBuilt: discipline sets do not exist yet
            NoValuesDiscovered: no value was found in any selected discipline
            NoSetsCreated: values were found but every set failed
        """
        with self._running(EngineState.CUSTOM_SETS_BUILDING, EngineState.CUSTOM_SETS_READY):
            if not category or not attribute:
                raise ValidationError("Please scan properties first and select a property "
                                      "category and name.")
            return self._build_value_sets("custom_sets", CUSTOM_SETS_FOLDER, category, attribute,
                                          selected_disciplines, cancel_token)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _running(self, running: EngineState, ready: EngineState,
                 failed: Optional[EngineState] = None):
        if self.state.is_running:
            raise OperationInProgress(f"Another operation is in progress ({self.state.value})")

        previous = self.state
        self.state = running
        try:
            yield
        except BaseException:
            self.state = failed or previous
            raise
        self.state = ready

    def _validate_selection(self, selected_disciplines: Iterable[str]) -> List[str]:
        if isinstance(selected_disciplines, str):
            selected_disciplines = [selected_disciplines]
        selected = []
        for name in selected_disciplines or ():
            if name and name not in selected:
                selected.append(name)
        if not selected:
            raise ValidationError("Please select at least one discipline model.")
        if not self.context.registry:
            raise DisciplinesNotBuilt()
        return selected

    def _build_value_sets(self, operation: str, folder_name: str, category: str, attribute: str,
                          selected_disciplines: Iterable[str],
                          cancel_token: Optional[CancellationToken]) -> OperationSummary:
        selected = self._validate_selection(selected_disciplines)
        summary = OperationSummary(operation)
        values_found = 0

        self.logger.info(f"Creating search sets for {category}/{attribute} in "
                         f"{', '.join(selected)}...")

        builder = QueryBuilder(self.context.registry,
                               lambda query: self.host.execute_query(query, cancel_token))

        root = HierarchyBuilder.root(self.host.list_persisted_top_level_nodes())
        top = HierarchyBuilder.find_folder(root, folder_name)
        if top is None:
            top = FolderNode(folder_name)
            self.host.persist(top)

        for discipline in selected:
            elements = builder.base_selection(discipline)
            if elements is None:
                self._skip_unknown(discipline, summary)
                continue

            values = self.discoverer.discover_values(elements, category, attribute, cancel_token)
            values_found += len(values)
            self._collect_access_failures(summary)

            if not values:
                self.logger.info(f"  {discipline}: no values for {attribute}, skipped")
                summary.skipped.append(discipline)
                summary.disciplines[discipline] = 0
                continue

            folder = self.hierarchy.find_or_create_folder(top, discipline)
            created = 0
            for value in values:
                try:
                    query = builder.build(discipline, category, attribute, value)
                    if query is None:
                        raise SetCreationFailure(discipline, value, "discipline selection unavailable")
                    self.hierarchy.add_leaf(folder, value, query)
                    created += 1
                except Exception as e:
                    failure = e if isinstance(e, SetCreationFailure) else SetCreationFailure(discipline, value, e)
                    self.logger.warning(f"  {failure}")
                    summary.diagnostics.append(str(failure))

            if created:
                self.host.persist(folder, parent=top)

            summary.disciplines[discipline] = created
            summary.created += created
            self.logger.info(f"  {discipline}: {created} sets")

        if summary.created == 0:
            if values_found:
                raise NoSetsCreated(attribute, summary.diagnostics)
            raise NoValuesDiscovered(attribute, selected)

        self.logger.info(f"✓ Created {summary.created} search sets under {folder_name}")
        return summary

    def _skip_unknown(self, discipline: str, summary: OperationSummary) -> None:
        self.logger.warning(f"  {discipline}: no discipline search set, skipped")
        summary.skipped.append(discipline)

    def _collect_access_failures(self, summary: OperationSummary) -> None:
        summary.diagnostics.extend(str(f) for f in self.discoverer.access_failures)
