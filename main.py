"""
Main entry point with conversational interface.

Features:
- Loads the MCP server list from a JSON config file
- Connects every server before the chat starts
- Interactive chat with a local Ollama model that can call MCP tools
- Reserved words: help, tools/list, clear, exit/quit
- Graceful shutdown of every server process
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from config.client_config import DEFAULT_SYSTEM_PROMPT, ClientConfig, ConfigError, load_client_config
from config.settings import get_settings
from host.agent import AgentConfig, ToolAgent
from host.errors import StartupError
from host.mcp_host import MCPHost
from host.ollama_client import OllamaClient
from shared.logging_config import get_logger, setup_logging

logger = get_logger(__name__)

HELP_TEXT = """
# Available Commands

- **help** - Show this help message
- **tools** - List all available MCP tools and servers
- **list** - Alias for 'tools'
- **clear** - Clear conversation history
- **exit** - Exit the client
- **quit** - Alias for 'exit'

Or just ask a question to chat with the AI assistant!
"""


class ConversationalInterface:
    """Interactive line-based front end for a ToolAgent."""

    def __init__(self, agent: ToolAgent, host: MCPHost, console: Optional[Console] = None):
        """
        Args:
            agent: Agent that answers chat lines
            host: MCP host whose tools are listed by the 'tools' command
            console: Rich console used for all output
        """
        self.agent = agent
        self.host = host
        self.console = console or Console()

        self.commands = {
            "help": self._cmd_help,
            "tools": self._cmd_tools,
            "list": self._cmd_tools,
            "clear": self._cmd_clear,
            "exit": self._cmd_quit,
            "quit": self._cmd_quit,
        }

        self.running = True

    async def run(self):
        """Run the conversational interface loop."""
        self.console.print(Panel("Chat started (type \"exit\" to quit)", border_style="green"))

        while self.running:
            try:
                line = Prompt.ask("\n[bold cyan]>[/bold cyan]", console=self.console)
            except (KeyboardInterrupt, EOFError):
                self.console.print("\n[yellow]Goodbye![/yellow]")
                break

            await self.handle_line(line)

    async def handle_line(self, line: str) -> bool:
        """
        Process one input line.

        Returns:
            False once the user asked to leave
        """
        text = line.strip()
        if not text:
            return self.running

        handler = self.commands.get(text.lower())
        if handler is not None:
            handler()
            return self.running

        try:
            with self.console.status("[bold green]Thinking...", spinner="dots"):
                answer = await self.agent.chat(text)
        except Exception as e:
            logger.error("chat_error", error=str(e))
            self.console.print(f"[red]Error: {e}[/red]")
            return self.running

        self.console.print()
        self.console.print(Markdown(answer or ""))
        return self.running

    def _cmd_help(self):
        self.console.print(Markdown(HELP_TEXT))

    def _cmd_tools(self):
        tools = self.host.tools()
        table = Table(title=f"Available tools ({len(tools)})")
        table.add_column("Server", style="yellow")
        table.add_column("Tool", style="cyan")
        table.add_column("Description", style="white")

        for server_name, server_tools in self.host.tools_by_server().items():
            for tool in server_tools:
                table.add_row(server_name, tool.name, tool.description or "No description")

        self.console.print(table)

    def _cmd_clear(self):
        self.agent.clear_history()
        self.console.print("[green]Conversation history cleared.[/green]")

    def _cmd_quit(self):
        self.console.print("\n[yellow]Goodbye![/yellow]")
        self.running = False


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ollama-mcp",
        description="Chat with a local LLM that can use MCP tools",
    )
    parser.add_argument("-m", "--model", help="Ollama model to use (default: from config)")
    parser.add_argument("-c", "--config", type=Path, help="Config file (default: search standard locations)")
    parser.add_argument("--max-iterations", type=int, help="Model round-trips allowed per question")
    parser.add_argument("--log-level", help="Log level (default: from settings)")
    return parser.parse_args(argv)


def _first_set(*values):
    return next((value for value in values if value is not None), None)


def build_agent_config(args: argparse.Namespace, client_config: ClientConfig) -> AgentConfig:
    """Merge command line, config file and settings, in that order of precedence."""
    settings = get_settings()
    return AgentConfig(
        model=args.model or client_config.model or settings.ollama_model,
        system_prompt=client_config.system_prompt or DEFAULT_SYSTEM_PROMPT,
        max_iterations=_first_set(args.max_iterations, client_config.max_iterations, settings.agent_max_iterations),
    )


async def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(
        log_level=args.log_level or settings.mcp_log_level,
        json_logs=settings.mcp_json_logs,
    )
    console = Console()

    logger.info("application_starting")

    try:
        client_config = load_client_config(args.config)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("\nRun with --help for usage information")
        return 1

    try:
        agent_config = build_agent_config(args, client_config)
    except ValidationError as e:
        console.print(f"[red]Error: Invalid agent settings: {e}[/red]")
        console.print("\nRun with --help for usage information")
        return 1

    host = MCPHost()

    try:
        try:
            await host.connect_all(client_config.mcp_servers)
        except StartupError as e:
            console.print(f"[red]Failed to connect to MCP server '{e.server}': {e.reason}[/red]")
            console.print("Check the server's command and args in your config file.")
            return 1

        tools = host.tools()
        console.print(f"Total tools available: {len(tools)}")
        console.print("Tools: " + ", ".join(tool.name for tool in tools))

        backend = OllamaClient(model=agent_config.model)
        if not await backend.check_health():
            console.print(f"[yellow]Warning: Ollama is not reachable at {backend.host}[/yellow]")

        agent = ToolAgent(host, backend, agent_config)
        await ConversationalInterface(agent, host, console).run()
        return 0

    finally:
        logger.info("shutting_down")
        await host.disconnect_all()
        logger.info("application_stopped")


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\n\nShutting down...")
        sys.exit(0)


if __name__ == "__main__":
    run()
