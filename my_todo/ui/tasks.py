from __future__ import annotations

import html

import streamlit as st

from my_todo import todos
from my_todo.charts import build_level_gauge
from my_todo.constants import EDIT_TODO_TEXT_KEY_PREFIX, EDITING_TODO_KEY, NEW_TODO_TEXT_KEY
from my_todo.filters import empty_message
from my_todo.i18n import translate_text
from my_todo.models import LevelInfo, TodoFilter, TodoItem
from my_todo.realtime import poll_changes
from my_todo.repository import TodoRepository
from my_todo.state import get_store_state

CREATED_AT_FORMAT = "%Y/%m/%d %H:%M"


def _submit_new_todo(repository: TodoRepository) -> None:
    text = str(st.session_state.get(NEW_TODO_TEXT_KEY, ""))
    created = todos.add(repository, text)
    if created is not None:
        st.session_state[NEW_TODO_TEXT_KEY] = ""


def render_input(repository: TodoRepository) -> None:
    is_adding = get_store_state().is_adding
    input_col, button_col = st.columns([0.8, 0.2])
    with input_col:
        st.text_input(
            translate_text(("新しいタスク", "New task")),
            key=NEW_TODO_TEXT_KEY,
            placeholder=translate_text(("買うものを入力", "What needs doing?")),
            label_visibility="collapsed",
            disabled=is_adding,
        )
    with button_col:
        st.button(
            translate_text(("送信中...", "Sending...")) if is_adding else translate_text(("追加", "Add")),
            key="add_todo_button",
            type="primary",
            disabled=is_adding,
            use_container_width=True,
            on_click=_submit_new_todo,
            kwargs={"repository": repository},
        )


def render_filter_selector() -> TodoFilter:
    current = get_store_state().filter
    options = list(TodoFilter)
    selected = st.radio(
        translate_text(("表示", "Show")),
        options=options,
        index=options.index(current),
        format_func=lambda option: translate_text(option.label),
        horizontal=True,
        label_visibility="collapsed",
        key="todo_filter_radio",
    )
    if selected is not current:
        todos.set_filter(selected)
    return selected


def _start_edit(todo: TodoItem) -> None:
    st.session_state[EDITING_TODO_KEY] = todo.id
    st.session_state[f"{EDIT_TODO_TEXT_KEY_PREFIX}_{todo.id}"] = todo.text


def _save_edit(repository: TodoRepository, todo_id: str) -> None:
    new_text = str(st.session_state.get(f"{EDIT_TODO_TEXT_KEY_PREFIX}_{todo_id}", ""))
    if todos.edit_text(repository, todo_id, new_text) is not None:
        st.session_state.pop(EDITING_TODO_KEY, None)


def _cancel_edit() -> None:
    st.session_state.pop(EDITING_TODO_KEY, None)


def render_todo_item(todo: TodoItem, repository: TodoRepository) -> None:
    with st.container(border=True):
        text_col, complete_col, edit_col, delete_col = st.columns([0.55, 0.15, 0.15, 0.15])

        if st.session_state.get(EDITING_TODO_KEY) == todo.id:
            with text_col:
                st.text_input(
                    translate_text(("タスクを編集", "Edit task")),
                    key=f"{EDIT_TODO_TEXT_KEY_PREFIX}_{todo.id}",
                    label_visibility="collapsed",
                )
            complete_col.button(
                translate_text(("保存", "Save")),
                key=f"save_{todo.id}",
                on_click=_save_edit,
                kwargs={"repository": repository, "todo_id": todo.id},
            )
            edit_col.button(translate_text(("取消", "Cancel")), key=f"cancel_{todo.id}", on_click=_cancel_edit)
        else:
            css_class = "todo-text done" if todo.completed else "todo-text"
            created = todo.created_at.astimezone().strftime(CREATED_AT_FORMAT)
            text_col.markdown(
                f"<span class='{css_class}'>{html.escape(todo.text)}</span>"
                f"<span class='todo-created'>{created}</span>",
                unsafe_allow_html=True,
            )
            complete_col.button(
                translate_text(("戻す", "Undo")) if todo.completed else translate_text(("完了", "Done")),
                key=f"complete_{todo.id}",
                on_click=todos.toggle_complete,
                args=(repository, todo.id),
            )
            edit_col.button(
                translate_text(("編集", "Edit")),
                key=f"edit_{todo.id}",
                on_click=_start_edit,
                args=(todo,),
            )

        delete_col.button(
            translate_text(("削除", "Delete")),
            key=f"delete_{todo.id}",
            on_click=todos.remove,
            args=(repository, todo.id),
        )


def render_todo_list(repository: TodoRepository) -> None:
    state = get_store_state()
    if not state.is_loaded and state.last_error:
        st.error(translate_text(("タスクを読み込めませんでした。", "Tasks could not be loaded.")))
        st.button(
            translate_text(("再読み込み", "Reload")),
            key="reload_todos",
            on_click=todos.load,
            args=(repository,),
        )
        return

    visible = todos.visible_todos()
    if not visible:
        st.info(translate_text(empty_message(state.filter)))
        return

    for todo in visible:
        render_todo_item(todo, repository)


def render_gamification_panel(level_info: LevelInfo) -> None:
    panel = st.sidebar
    panel.subheader(translate_text(("称号", "Title")))
    panel.markdown(f"**Lv.{level_info.level}** {translate_text(level_info.title_label)}")
    panel.plotly_chart(
        build_level_gauge(level_info, title=translate_text(("次のレベルまで", "To next level"))),
        use_container_width=True,
    )
    panel.caption(
        translate_text(
            (
                f"完了したタスク: {level_info.completed_count}件",
                f"Completed tasks: {level_info.completed_count}",
            )
        )
    )


def render_sync_fragment(repository: TodoRepository, *, interval_seconds: float) -> None:
    """Poll the task table and fold differences into the store."""

    if interval_seconds <= 0 or not get_store_state().is_loaded:
        return

    @st.fragment(run_every=interval_seconds)
    def _sync() -> None:
        events = poll_changes(repository, get_store_state().todos)
        for event in events:
            todos.on_remote_change(event)
        if events:
            st.rerun(scope="app")

    _sync()
