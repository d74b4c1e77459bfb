from skills_agent.tui.widgets.activity_log import ActivityLog
from skills_agent.tui.widgets.base import StoreView
from skills_agent.tui.widgets.header import DashboardHeader
from skills_agent.tui.widgets.hint_bar import HintBar
from skills_agent.tui.widgets.subagent_panel import SubagentPanel
from skills_agent.tui.widgets.todo_panel import TodoPanel

__all__ = [
    "ActivityLog",
    "DashboardHeader",
    "HintBar",
    "StoreView",
    "SubagentPanel",
    "TodoPanel",
]
