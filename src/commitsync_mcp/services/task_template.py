"""The fixed task checklist every synced commit receives."""

from __future__ import annotations

from dataclasses import dataclass

from commitsync_mcp.models.task import Task, TaskStatus


@dataclass(frozen=True)
class TaskSpec:
    stage_name: str
    name: str
    required_capabilities: tuple[str, ...]


def _devicelab(name: str) -> TaskSpec:
    return TaskSpec("devicelab", name, ("has-android-device",))


TASK_TEMPLATE: tuple[TaskSpec, ...] = (
    TaskSpec("travis", "travis", ("can-update-travis",)),

    TaskSpec("chromebot", "mac_bot", ("can-update-chromebots",)),
    TaskSpec("chromebot", "linux_bot", ("can-update-chromebots",)),

    _devicelab("complex_layout_scroll_perf__timeline_summary"),
    _devicelab("flutter_gallery__start_up"),
    _devicelab("complex_layout__start_up"),
    _devicelab("flutter_gallery__transition_perf"),
    _devicelab("mega_gallery__refresh_time"),

    _devicelab("flutter_gallery__build"),
    _devicelab("complex_layout__build"),
    _devicelab("basic_material_app__size"),

    _devicelab("analyzer_cli__analysis_time"),
    _devicelab("analyzer_server__analysis_time"),
)


def create_task_list(checklist_key: str) -> list[Task]:
    """Instantiate the template as fresh ``New`` tasks owned by ``checklist_key``."""
    return [
        Task(
            checklist_key=checklist_key,
            stage_name=spec.stage_name,
            name=spec.name,
            required_capabilities=list(spec.required_capabilities),
            status=TaskStatus.NEW,
        )
        for spec in TASK_TEMPLATE
    ]
