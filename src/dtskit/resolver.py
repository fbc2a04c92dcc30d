from collections import defaultdict
from typing import Iterable, List

from dtskit.errors import UnknownRootModuleError
from dtskit.graph import ModuleMap
from dtskit.logger import logger
from dtskit.models import ExportRecord, ModuleGraphNode, ResolutionState


class ExportResolver:
    """
    Computes, for each module, the concrete exports reachable through its
    re-export edges.

    Every module moves through `unresolved -> in_progress -> resolved`. A
    module reached again while it is still in progress answers with the
    (empty) partial result recorded when its resolution started, which is
    what terminates cyclic re-exports.
    """

    def __init__(self, module_map: ModuleMap) -> None:
        self.module_map = module_map
        self._state: dict[int, ResolutionState] = {}
        self._resolved: dict[int, List[ExportRecord]] = {}

    def state(self, module: ModuleGraphNode) -> ResolutionState:
        return self._state.get(id(module), ResolutionState.UNRESOLVED)

    def resolve(self, module: ModuleGraphNode) -> List[ExportRecord]:
        key = id(module)
        state = self.state(module)
        if state is ResolutionState.RESOLVED:
            return self._resolved[key]
        if state is ResolutionState.IN_PROGRESS:
            logger.debug("Cyclic re-export", module=module.name)
            return self._resolved[key]

        self._state[key] = ResolutionState.IN_PROGRESS
        self._resolved[key] = []

        # Nested modules are separate lookup targets; their exports are not
        # promoted into this module.
        for sub in module.modules:
            self.resolve(sub)

        result: dict[int, ExportRecord] = {}
        for record in module.exports:
            if record.is_concrete:
                result.setdefault(id(record), record)
                continue

            target = self.module_map.get_module(record.from_module or "")
            if target is None:
                continue
            target_exports = self.resolve(target)

            if record.is_wildcard:
                for x in target_exports:
                    result.setdefault(id(x), x)
                continue

            match = next((x for x in target_exports if x.name == record.name), None)
            if match is None:
                logger.warning(
                    "Couldn't find export",
                    export=record.name,
                    module=record.from_module,
                    requested_by=module.name,
                )
                continue
            result.setdefault(id(match), match)

        resolved = list(result.values())
        self._resolved[key] = resolved
        self._state[key] = ResolutionState.RESOLVED
        return resolved

    def resolve_all(self, graphs: Iterable[ModuleGraphNode]) -> None:
        for graph in graphs:
            self.resolve(graph)

    def resolve_roots(self, names: Iterable[str]) -> List[ExportRecord]:
        """
        Union the resolved exports of the root modules, in root order.
        Raises UnknownRootModuleError for a root that no input declares.
        """
        final: dict[int, ExportRecord] = {}
        for name in names:
            module = self.module_map.lookup(name)
            if module is None:
                raise UnknownRootModuleError(name)
            for record in self.resolve(module):
                final.setdefault(id(record), record)

        exports = list(final.values())
        _report_conflicts(exports)
        return exports

    def exports_name(self, module: ModuleGraphNode, name: str) -> bool:
        return any(x.name == name for x in self.resolve(module))


def _report_conflicts(exports: List[ExportRecord]) -> None:
    """
    Warn about public names exported from more than one file. Several records
    with one name in a single file are overloads or merged declarations.
    """
    origins: dict[str, list[str]] = defaultdict(list)
    for record in exports:
        path = record.source.path if record.source is not None else ""
        if path not in origins[record.name]:
            origins[record.name].append(path)
    for name, paths in origins.items():
        if len(paths) > 1:
            logger.warning("Conflicting exports", export=name, files=paths)
