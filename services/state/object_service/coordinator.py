"""Batch and recursive operations that report partial failure as data.

Neither coordinator raises for a single item's failure. Each item outcome is
mapped to an ``ErrorDetail`` and collected on the returned payload.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from packages.cmis_shared.errors import ErrorDetail
from packages.cmis_shared.logging import get_logger
from resources.adapters.cmis_transport import CmisTransport, ObjectOperation
from services.state.object_service.change_token import ChangeTokenGuard
from services.state.object_service.codec import (
    DescendantNode,
    encode_extension,
    encode_id_list,
    encode_properties,
    parameters,
)
from services.state.object_service.domain import (
    BulkUpdateEntry,
    BulkUpdateResult,
    Extension,
    FailedToDelete,
    Properties,
    UnfileObject,
)
from services.state.object_service.errors import (
    OBJECT_NOT_FOUND,
    constraint_violation,
    error_metadata,
)

_LOGGER = get_logger(__name__)

FailureMapper = Callable[..., ErrorDetail]
"""Called as ``mapper(exc, operation=..., metadata=...)``."""


class BulkUpdateCoordinator:
    """Apply one property update per entry, best effort, in input order."""

    def __init__(self, *, transport: CmisTransport, map_failure: FailureMapper) -> None:
        self._transport = transport
        self._map_failure = map_failure

    def run(
        self,
        *,
        repository_id: str,
        entries: Sequence[BulkUpdateEntry],
        properties: Properties,
        add_secondary_type_ids: Sequence[str],
        remove_secondary_type_ids: Sequence[str],
        extension: Extension | None,
    ) -> BulkUpdateResult:
        """Dispatch every entry and return all entries with their outcomes."""
        shared = parameters(
            repositoryId=repository_id,
            properties=encode_properties(properties) or None,
            addSecondaryTypeIds=encode_id_list(add_secondary_type_ids),
            removeSecondaryTypeIds=encode_id_list(remove_secondary_type_ids),
            extension=encode_extension(extension),
        )
        results: list[BulkUpdateEntry] = []
        failures: dict[str, ErrorDetail] = {}
        for entry in entries:
            guard = ChangeTokenGuard(
                object_id=entry.object_id, change_token=entry.change_token
            )
            try:
                response = self._transport.invoke(
                    operation=ObjectOperation.UPDATE_PROPERTIES,
                    parameters={**shared, **guard.parameters()},
                )
                successor = guard.successor(response)
            except Exception as exc:  # noqa: BLE001
                error = self._map_failure(
                    exc,
                    operation="bulk_update_properties",
                    metadata=error_metadata(
                        "bulk_update_properties", object_id=entry.object_id
                    ),
                )
                _LOGGER.warning(
                    "bulk update entry failed: object_id=%s code=%s",
                    entry.object_id,
                    error.code,
                )
                failures[entry.object_id] = error
                results.append(entry)
                continue
            results.append(
                entry.model_copy(
                    update={
                        "new_object_id": successor.object_id,
                        "new_change_token": successor.change_token,
                    }
                )
            )

        _LOGGER.info(
            "bulk update finished: entries=%d failed=%d",
            len(results),
            len(failures),
        )
        return BulkUpdateResult(entries=tuple(results), failures=failures)


@dataclass(frozen=True)
class _Step:
    """One visit of an object under one parent in post-order."""

    node: DescendantNode
    parent_id: str | None


class TreeDeletionCoordinator:
    """Delete a folder's subtree children-first and report what remains."""

    def __init__(self, *, transport: CmisTransport, map_failure: FailureMapper) -> None:
        self._transport = transport
        self._map_failure = map_failure

    def run(
        self,
        *,
        repository_id: str,
        folder: DescendantNode,
        all_versions: bool,
        unfile_objects: UnfileObject,
        continue_on_failure: bool,
        extension: Extension | None,
    ) -> FailedToDelete:
        """Walk ``folder`` post-order and return the objects left behind."""
        steps = _post_order(folder)
        filings = Counter(step.node.object_id for step in steps)
        removed: set[str] = set()
        blocked: set[str] = set()
        failed: list[str] = []
        causes: dict[str, ErrorDetail] = {}

        for index, step in enumerate(steps):
            object_id = step.node.object_id
            if object_id in removed:
                continue

            if step.node.is_folder and object_id in blocked:
                error = constraint_violation(
                    "folder still has descendants that could not be removed",
                    metadata=error_metadata("delete_tree", folder_id=object_id),
                )
            else:
                error = self._remove(
                    repository_id=repository_id,
                    step=step,
                    all_versions=all_versions,
                    unfile_objects=unfile_objects,
                    extension=extension,
                    removed=removed,
                    filed_in_tree=filings[object_id],
                )
            if error is None:
                continue

            _LOGGER.warning(
                "tree deletion could not remove object: object_id=%s code=%s",
                object_id,
                error.code,
            )
            if object_id not in causes:
                failed.append(object_id)
                causes[object_id] = error
            if step.parent_id is not None:
                blocked.add(step.parent_id)
            if not continue_on_failure:
                for remaining in steps[index + 1 :]:
                    remaining_id = remaining.node.object_id
                    if remaining_id not in removed and remaining_id not in failed:
                        failed.append(remaining_id)
                break

        _LOGGER.info(
            "tree deletion finished: folder_id=%s visited=%d not_deleted=%d",
            folder.object_id,
            len(steps),
            len(failed),
        )
        return FailedToDelete(object_ids=tuple(failed), causes=causes)

    def _remove(
        self,
        *,
        repository_id: str,
        step: _Step,
        all_versions: bool,
        unfile_objects: UnfileObject,
        extension: Extension | None,
        removed: set[str],
        filed_in_tree: int,
    ) -> ErrorDetail | None:
        """Delete or unfile one object; return the failure, if any.

        Under ``DELETE_SINGLE_FILED`` a document is unfiled only when it is
        also filed in a folder outside the tree.
        """
        node = step.node
        unfile = step.parent_id is not None and not node.is_folder and (
            unfile_objects == UnfileObject.UNFILE
            or (
                unfile_objects == UnfileObject.DELETE_SINGLE_FILED
                and filed_in_tree < node.parent_count
            )
        )
        if unfile:
            operation = ObjectOperation.REMOVE_OBJECT_FROM_FOLDER
            params: dict[str, Any] = parameters(
                repositoryId=repository_id,
                objectId=node.object_id,
                folderId=step.parent_id,
                extension=encode_extension(extension),
            )
        else:
            operation = ObjectOperation.DELETE_OBJECT
            params = parameters(
                repositoryId=repository_id,
                objectId=node.object_id,
                allVersions=all_versions,
                extension=encode_extension(extension),
            )

        try:
            self._transport.invoke(operation=operation, parameters=params)
        except Exception as exc:  # noqa: BLE001
            error = self._map_failure(
                exc,
                operation="delete_tree",
                metadata=_step_metadata(step),
            )
            if not error.is_code(OBJECT_NOT_FOUND):
                return error
        if not unfile:
            removed.add(node.object_id)
        return None


def _post_order(folder: DescendantNode) -> list[_Step]:
    """Return children-before-parent visits, ending with ``folder`` itself."""
    steps: list[_Step] = []

    def visit(node: DescendantNode, parent_id: str | None) -> None:
        for child in node.children:
            visit(child, node.object_id)
        steps.append(_Step(node=node, parent_id=parent_id))

    visit(folder, None)
    return steps


def _step_metadata(step: _Step) -> Mapping[str, str]:
    return error_metadata(
        "delete_tree", object_id=step.node.object_id, folder_id=step.parent_id
    )
