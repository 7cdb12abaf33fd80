"""Unified ``tasks`` tool: validation, repair, moves and tag management."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Union

from mcp.server.fastmcp import FastMCP

from taskgraph.config import TaskGraphConfig
from taskgraph.core.identity import parse_task_ids
from taskgraph.core.responses.builders import success_response
from taskgraph.core.responses.types import ErrorCode
from taskgraph.core.store import copy_tag, create_tag, delete_tag, list_tags, rename_tag
from taskgraph.core.task import move_cross_tag, move_tasks_within_tag, move_within_tag
from taskgraph.core.validation import fix_dependencies, validate_tags
from taskgraph.tools.unified.common import (
    dispatch_with_standard_errors,
    load_tool_store,
    make_validation_error_fn,
    persist_tool_store,
)
from taskgraph.tools.unified.router import ActionDefinition, ActionRouter

logger = logging.getLogger(__name__)

_validation_error = make_validation_error_fn("tasks", default_code=ErrorCode.MISSING_REQUIRED)

IdsArg = Optional[Union[str, int, List[Union[str, int]]]]


def _tag(config: TaskGraphConfig, tag: Optional[str]) -> str:
    return tag if tag else config.default_tag


def _id_list(value: IdsArg) -> List[str]:
    if value is None or value == "" or value == []:
        return []
    if isinstance(value, int):
        value = [value]
    return [str(ref) for ref in parse_task_ids(value)]


def _require(action: str, **fields: Any) -> Optional[dict]:
    for name, value in fields.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            return _validation_error(field=name, action=action, message=f"{name} is required")
    return None


def _handle_validate(
    *, config: TaskGraphConfig, tasks_file: Optional[str] = None, tag: Optional[str] = None, **_: Any
) -> dict:
    store, err = load_tool_store(config, tasks_file)
    if err:
        return err
    result = validate_tags(store, tag)
    return asdict(success_response(result.to_dict()))


def _handle_fix(
    *,
    config: TaskGraphConfig,
    tasks_file: Optional[str] = None,
    tag: Optional[str] = None,
    max_iterations: Optional[int] = None,
    dry_run: bool = False,
    **_: Any,
) -> dict:
    if max_iterations is not None and max_iterations < 0:
        return _validation_error(
            field="max_iterations", action="fix", message="must be >= 0", code=ErrorCode.INVALID_FORMAT
        )
    store, err = load_tool_store(config, tasks_file)
    if err:
        return err
    result = fix_dependencies(
        store,
        _tag(config, tag),
        max_iterations=config.fix_max_iterations if max_iterations is None else max_iterations,
    )
    saved = persist_tool_store(config, result.store, dry_run) if result.changes else {"dry_run": dry_run, "saved": False}
    warnings = [v.message for v in result.unfixable]
    return asdict(success_response({**result.to_dict(), **saved}, warnings=warnings or None))


def _handle_move(
    *,
    config: TaskGraphConfig,
    tasks_file: Optional[str] = None,
    tag: Optional[str] = None,
    from_id: IdsArg = None,
    to_id: IdsArg = None,
    dry_run: bool = False,
    **_: Any,
) -> dict:
    err = _require("move", from_id=from_id, to_id=to_id)
    if err:
        return err
    store, err = load_tool_store(config, tasks_file)
    if err:
        return err

    sources = _id_list(from_id)
    destinations = _id_list(to_id)
    tag_name = _tag(config, tag)
    if len(sources) == 1 and len(destinations) == 1:
        result = move_within_tag(store, tag_name, sources[0], destinations[0])
        saved = persist_tool_store(config, result.store, dry_run)
        return asdict(success_response({**result.to_dict(), **saved}))

    batch = move_tasks_within_tag(store, tag_name, sources, destinations)
    warnings = [f"Move {f['from_id']} -> {f['to_id']} failed: {f['error']['message']}" for f in batch.failed]
    saved = persist_tool_store(config, batch.store, dry_run) if batch.moved else {"dry_run": dry_run, "saved": False}
    return asdict(success_response({**batch.to_dict(), **saved}, warnings=warnings or None))


def _handle_move_cross(
    *,
    config: TaskGraphConfig,
    tasks_file: Optional[str] = None,
    task_ids: IdsArg = None,
    source_tag: Optional[str] = None,
    target_tag: Optional[str] = None,
    with_dependencies: bool = False,
    ignore_dependencies: bool = False,
    dry_run: bool = False,
    **_: Any,
) -> dict:
    err = _require("move-cross", task_ids=task_ids, source_tag=source_tag, target_tag=target_tag)
    if err:
        return err
    store, err = load_tool_store(config, tasks_file)
    if err:
        return err
    result = move_cross_tag(
        store,
        source_tag,
        target_tag,
        _id_list(task_ids),
        with_dependencies=with_dependencies,
        ignore_dependencies=ignore_dependencies,
    )
    saved = persist_tool_store(config, result.store, dry_run)
    return asdict(success_response({**result.to_dict(), **saved}, warnings=result.tips or None))


def _handle_tag_create(
    *,
    config: TaskGraphConfig,
    tasks_file: Optional[str] = None,
    name: Optional[str] = None,
    copy_from: Optional[str] = None,
    description: Optional[str] = None,
    dry_run: bool = False,
    **_: Any,
) -> dict:
    err = _require("tag-create", name=name)
    if err:
        return err
    store, err = load_tool_store(config, tasks_file)
    if err:
        return err
    result = create_tag(store, name, copy_from_tag=copy_from, description=description)
    return asdict(success_response({**result.to_dict(), **persist_tool_store(config, result.store, dry_run)}))


def _handle_tag_copy(
    *,
    config: TaskGraphConfig,
    tasks_file: Optional[str] = None,
    name: Optional[str] = None,
    new_name: Optional[str] = None,
    description: Optional[str] = None,
    dry_run: bool = False,
    **_: Any,
) -> dict:
    err = _require("tag-copy", name=name, new_name=new_name)
    if err:
        return err
    store, err = load_tool_store(config, tasks_file)
    if err:
        return err
    result = copy_tag(store, name, new_name, description=description)
    return asdict(success_response({**result.to_dict(), **persist_tool_store(config, result.store, dry_run)}))


def _handle_tag_rename(
    *,
    config: TaskGraphConfig,
    tasks_file: Optional[str] = None,
    name: Optional[str] = None,
    new_name: Optional[str] = None,
    dry_run: bool = False,
    **_: Any,
) -> dict:
    err = _require("tag-rename", name=name, new_name=new_name)
    if err:
        return err
    store, err = load_tool_store(config, tasks_file)
    if err:
        return err
    result = rename_tag(store, name, new_name, protected_tag=config.default_tag)
    return asdict(success_response({**result.to_dict(), **persist_tool_store(config, result.store, dry_run)}))


def _handle_tag_delete(
    *,
    config: TaskGraphConfig,
    tasks_file: Optional[str] = None,
    name: Optional[str] = None,
    dry_run: bool = False,
    **_: Any,
) -> dict:
    err = _require("tag-delete", name=name)
    if err:
        return err
    store, err = load_tool_store(config, tasks_file)
    if err:
        return err
    result = delete_tag(store, name, protected_tag=config.default_tag)
    saved = persist_tool_store(config, result.store, dry_run)
    return asdict(success_response({**result.to_dict(), **saved}, warnings=result.warnings or None))


def _handle_tag_list(*, config: TaskGraphConfig, tasks_file: Optional[str] = None, **_: Any) -> dict:
    store, err = load_tool_store(config, tasks_file)
    if err:
        return err
    summaries = list_tags(store, current_tag=config.default_tag)
    return asdict(success_response({"tags": summaries, "count": len(summaries)}))


_ACTION_DEFINITIONS = [
    ActionDefinition(name="validate", handler=_handle_validate, summary="Report graph violations per tag"),
    ActionDefinition(name="fix", handler=_handle_fix, summary="Repair dangling, self and cyclic dependencies in a tag"),
    ActionDefinition(name="move", handler=_handle_move, summary="Relabel or swap task ids within a tag"),
    ActionDefinition(name="move-cross", handler=_handle_move_cross, summary="Move tasks between tags"),
    ActionDefinition(name="tag-create", handler=_handle_tag_create, summary="Create a tag"),
    ActionDefinition(name="tag-rename", handler=_handle_tag_rename, summary="Rename a tag"),
    ActionDefinition(name="tag-delete", handler=_handle_tag_delete, summary="Delete a tag and its tasks"),
    ActionDefinition(name="tag-copy", handler=_handle_tag_copy, summary="Copy a tag with all its tasks"),
    ActionDefinition(name="tag-list", handler=_handle_tag_list, summary="List tags with task counts"),
]

_TASKS_ROUTER = ActionRouter(tool_name="tasks", actions=_ACTION_DEFINITIONS)


def _dispatch_tasks_action(*, action: str, payload: Dict[str, Any], config: TaskGraphConfig) -> dict:
    return dispatch_with_standard_errors(_TASKS_ROUTER, "tasks", action, config=config, **payload)


def register_unified_tasks_tool(mcp: FastMCP, config: TaskGraphConfig) -> None:
    """Register the consolidated tasks tool."""

    @mcp.tool(name="tasks")
    def tasks(
        action: str,
        tasks_file: Optional[str] = None,
        tag: Optional[str] = None,
        from_id: Optional[Union[str, int, List[Union[str, int]]]] = None,
        to_id: Optional[Union[str, int, List[Union[str, int]]]] = None,
        task_ids: Optional[Union[str, int, List[Union[str, int]]]] = None,
        source_tag: Optional[str] = None,
        target_tag: Optional[str] = None,
        with_dependencies: bool = False,
        ignore_dependencies: bool = False,
        name: Optional[str] = None,
        new_name: Optional[str] = None,
        copy_from: Optional[str] = None,
        description: Optional[str] = None,
        max_iterations: Optional[int] = None,
        dry_run: bool = False,
    ) -> dict:
        """Task graph operations.

        Actions: validate, fix, move, move-cross, tag-create, tag-rename,
        tag-delete, tag-copy, tag-list. Mutating actions persist the tasks
        file unless ``dry_run`` is set.
        """
        payload = {
            "tasks_file": tasks_file,
            "tag": tag,
            "from_id": from_id,
            "to_id": to_id,
            "task_ids": task_ids,
            "source_tag": source_tag,
            "target_tag": target_tag,
            "with_dependencies": with_dependencies,
            "ignore_dependencies": ignore_dependencies,
            "name": name,
            "new_name": new_name,
            "copy_from": copy_from,
            "description": description,
            "max_iterations": max_iterations,
            "dry_run": dry_run,
        }
        return _dispatch_tasks_action(action=action, payload=payload, config=config)

    logger.debug("Registered unified tasks tool with actions: %s", ", ".join(_TASKS_ROUTER.allowed_actions()))


__all__ = ["register_unified_tasks_tool"]
