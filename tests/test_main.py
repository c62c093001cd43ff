import asyncio
import io
import json

import pytest
from pydantic import ValidationError
from rich.console import Console

import main
from config.client_config import ClientConfig
from fakes import FakeSessionFactory, ScriptedBackend, reply, server, tool
from host.agent import AgentConfig, ToolAgent
from host.mcp_host import MCPHost


def make_interface(responses):
    factory = FakeSessionFactory({
        "alpha": {"tools": [tool("ping", "Ping a host")]},
        "beta": {"tools": [tool("pong")]},
    })
    host = MCPHost(session_factory=factory)
    asyncio.run(host.connect_all([server("alpha"), server("beta")]))
    agent = ToolAgent(host, ScriptedBackend(responses), AgentConfig(model="m", system_prompt="sys"))
    output = io.StringIO()
    console = Console(file=output, width=120, force_terminal=False)
    return main.ConversationalInterface(agent, host, console), agent, output


def test_question_is_sent_to_agent():
    interface, agent, output = make_interface([reply("42")])

    keep_going = asyncio.run(interface.handle_line("  what is the answer?  "))

    assert keep_going is True
    assert agent.history()[1].content == "what is the answer?"
    assert "42" in output.getvalue()


def test_reserved_words_do_not_reach_the_agent():
    interface, agent, output = make_interface([])

    asyncio.run(interface.handle_line("help"))
    asyncio.run(interface.handle_line("TOOLS"))
    asyncio.run(interface.handle_line("list"))
    asyncio.run(interface.handle_line(""))

    text = output.getvalue()
    assert "Available Commands" in text
    assert "Available tools (2)" in text
    assert "Ping a host" in text
    assert "No description" in text
    assert [m.role for m in agent.history()] == ["system"]


def test_clear_resets_history():
    interface, agent, output = make_interface([reply("hi")])

    asyncio.run(interface.handle_line("hello"))
    asyncio.run(interface.handle_line("clear"))

    assert [m.role for m in agent.history()] == ["system"]
    assert "Conversation history cleared." in output.getvalue()


def test_exit_and_quit_stop_the_loop():
    for word in ("exit", "quit"):
        interface, _, _ = make_interface([])
        assert asyncio.run(interface.handle_line(word)) is False
        assert interface.running is False


def test_chat_errors_are_printed_and_loop_continues():
    interface, _, output = make_interface([])

    keep_going = asyncio.run(interface.handle_line("this will fail"))

    assert keep_going is True
    assert "Error:" in output.getvalue()


def test_agent_config_precedence():
    client_config = ClientConfig(model="from-file", systemPrompt="file prompt", maxIterations=4)

    from_cli = main.build_agent_config(main.parse_args(["-m", "from-cli", "--max-iterations", "7"]), client_config)
    from_file = main.build_agent_config(main.parse_args([]), client_config)
    defaults = main.build_agent_config(main.parse_args([]), ClientConfig())

    assert (from_cli.model, from_cli.max_iterations) == ("from-cli", 7)
    assert (from_file.model, from_file.max_iterations, from_file.system_prompt) == ("from-file", 4, "file prompt")
    assert defaults.system_prompt == main.DEFAULT_SYSTEM_PROMPT
    assert defaults.max_iterations == 10


def test_main_without_config_exits_with_error(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))

    assert asyncio.run(main.main(["--config", str(tmp_path / "missing.json")])) == 1


def test_main_startup_failure_names_server(tmp_path, capsys):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "mcpServers": [{"name": "kubernetes-server", "command": "/nonexistent/kube-mcp"}]
    }))

    assert asyncio.run(main.main(["--config", str(config_path)])) == 1
    assert "kubernetes-server" in capsys.readouterr().out


def test_zero_max_iterations_is_rejected_not_ignored(tmp_path, capsys):
    with pytest.raises(ValidationError):
        main.build_agent_config(main.parse_args(["--max-iterations", "0"]), ClientConfig(maxIterations=4))

    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"mcpServers": []}))

    assert asyncio.run(main.main(["--config", str(config_path), "--max-iterations", "-3"])) == 1
    assert "Invalid agent settings" in capsys.readouterr().out
