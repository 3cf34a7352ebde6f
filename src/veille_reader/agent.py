"""LangGraph operator agent for Veille Reader."""

import json
import logging
import os
import sqlite3
from typing import Literal

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import AIMessage, SystemMessage, ToolMessage
from langgraph.checkpoint.sqlite import SqliteSaver
from langgraph.graph import END, START, MessagesState, StateGraph

from veille_reader.tools import (
    add_source,
    get_stats,
    list_sources,
    refresh_feeds,
    refresh_source,
    set_source_enabled,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

SYSTEM_PROMPT = """You are the Veille Reader operator, an assistant that keeps a reading list of newsletter articles and YouTube videos up to date.

You help the user:
- Refresh all enabled sources, or a single source, to pull in new items
- List configured sources with their kind, status and unread count
- Add a new newsletter (kind "article") or YouTube channel (kind "video") feed
- Enable or disable a source
- Report reading list statistics

When the user asks to refresh, update or check for new content, use refresh_feeds.
When the user names one source to refresh, look up its id with list_sources, then use refresh_source.
When a refresh reports errors, list each failing source and its message.
When a refresh is skipped because another one is running, say so and suggest trying again shortly.
When the user adds a YouTube channel, the feed URL has the form https://www.youtube.com/feeds/videos.xml?channel_id=<id>.
When the user's intent is unclear, ask a clarifying question rather than guessing.
Be concise but informative in your responses."""

TOOLS = [refresh_feeds, refresh_source, list_sources, add_source, set_source_enabled, get_stats]


def route_after_agent(state: MessagesState) -> Literal["tools", "__end__"]:
    """Send pending tool calls to the tools node, otherwise finish."""
    last_message = state["messages"][-1]
    if getattr(last_message, "tool_calls", None):
        return "tools"
    return END


def run_tool_calls(message: AIMessage, tools_by_name: dict) -> list[ToolMessage]:
    """Execute each tool call, turning failures into error results.

    A failing tool must still answer its call id, otherwise the next model
    turn is rejected for an unmatched tool_use block.
    """
    results = []
    for call in message.tool_calls:
        tool = tools_by_name.get(call["name"])
        if tool is None:
            content = json.dumps({"status": "error", "message": f"Unknown tool: {call['name']}"})
        else:
            try:
                content = str(tool.invoke(call["args"]))
            except Exception as e:
                logger.warning("Tool '%s' failed: %s", call["name"], e)
                content = json.dumps({"status": "error", "message": str(e)})
        results.append(ToolMessage(content=content, tool_call_id=call["id"]))
    return results


def create_agent(
    checkpoint_db_path: str = "veille_reader_checkpoints.db",
    tools: list | None = None,
):
    """Create and compile the operator agent.

    The model name can be overridden with ``VEILLE_AGENT_MODEL``.

    Args:
        checkpoint_db_path: Path to SQLite database for LangGraph checkpointing.
        tools: Tools to bind to the agent. If None, uses TOOLS.
    """
    tools = TOOLS if tools is None else tools
    tools_by_name = {tool.name: tool for tool in tools}

    model = ChatAnthropic(
        model=os.environ.get("VEILLE_AGENT_MODEL", DEFAULT_MODEL),
        temperature=0,
    )
    if tools:
        model = model.bind_tools(tools)

    def call_model(state: MessagesState):
        messages = [SystemMessage(content=SYSTEM_PROMPT), *state["messages"]]
        return {"messages": [model.invoke(messages)]}

    def call_tools(state: MessagesState):
        return {"messages": run_tool_calls(state["messages"][-1], tools_by_name)}

    graph = StateGraph(MessagesState)
    graph.add_node("operator", call_model)
    graph.add_node("tools", call_tools)
    graph.add_edge(START, "operator")
    graph.add_conditional_edges("operator", route_after_agent, ["tools", END])
    graph.add_edge("tools", "operator")

    connection = sqlite3.connect(checkpoint_db_path, check_same_thread=False)
    return graph.compile(checkpointer=SqliteSaver(connection))
