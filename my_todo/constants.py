"""Central constants for Streamlit session state keys and defaults."""

SS_STORE: str = "todo_store"
SS_AUTH_SESSION: str = "auth_session"
SS_PENDING_EFFECTS: str = "pending_effects"

NEW_TODO_TEXT_KEY: str = "new_todo_text"
EDITING_TODO_KEY: str = "editing_todo_id"
EDIT_TODO_TEXT_KEY_PREFIX: str = "edit_todo_text"
LOGIN_STATE_QUERY_PARAM: str = "login_state"

TASKS_PER_LEVEL: int = 5
PERCENT_PER_TASK: int = 100 // TASKS_PER_LEVEL

FALLBACK_PRAISE_MESSAGE: str = "タスク完了お疲れ様です！素晴らしいですね 🎉"
LOAD_ATTEMPTED_KEY: str = "todos_load_attempted"
