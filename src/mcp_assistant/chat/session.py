"""
Interactive chat session.

Runs the read-eval loop around the external agent runtime. Each turn
rebuilds the agent from live capability state, so providers that fail or
come back mid-session are reflected on the next message. Errors raised by
a turn are reported and the loop continues.
"""

import asyncio
import signal
import threading
from typing import Any, Callable, List, Optional, Tuple

import openai
from agents import MaxTurnsExceeded, ModelBehaviorError, Runner
from rich.console import Console
from rich.markdown import Markdown

from mcp_assistant.agent.classifier import classify_query
from mcp_assistant.chat.messages import APP_MESSAGES, ERROR_MESSAGES, HELP_TEXT, QUIT_WORDS
from mcp_assistant.cli.helpers.display import (
    create_capability_table,
    create_status_table,
    print_capabilities,
    print_connection_report,
    print_disconnect_report,
    print_warnings,
)
from mcp_assistant.core.exceptions import RuntimeExecutionError
from mcp_assistant.core.models import ChatMessage, ConnectionReport
from mcp_assistant.core.runtime import AssistantRuntime
from mcp_assistant.utils.config import validate_credentials
from mcp_assistant.utils.logging import get_logger

logger = get_logger(__name__)


class ChatSession:
    """Conversation loop bound to one assistant runtime."""

    def __init__(
        self,
        runtime: AssistantRuntime,
        console: Optional[Console] = None,
        variant: str = "default",
        auto_route: bool = False,
        input_func: Optional[Callable[[str], str]] = None,
        runner: Any = Runner,
    ):
        """
        Initialize the chat session.

        Args:
            runtime: Runtime owning providers and agent construction
            console: Rich console for output
            variant: Instruction variant used when auto routing is off
            auto_route: Classify each message to pick a variant
            input_func: Blocking line reader (defaults to the console)
            runner: Agent runner exposing an async ``run``
        """
        self.runtime = runtime
        self.console = console or Console()
        self.variant = variant
        self.auto_route = auto_route
        self.input_func = input_func or self.console.input
        self.runner = runner

        self.history: List[ChatMessage] = []
        self._stop = asyncio.Event()

    async def start(self) -> ConnectionReport:
        """Report configuration, connect providers and show capabilities."""
        _, warnings = validate_credentials(self.runtime.config.credentials)
        print_warnings(self.console, warnings)

        self.console.print(APP_MESSAGES["connecting"])
        report = await self.runtime.start()
        print_connection_report(self.console, report)
        if report.failed:
            self.console.print(f"[dim]{APP_MESSAGES['mcp_limited']}[/dim]")

        self.console.print(f"\n[bold]{APP_MESSAGES['welcome']}[/bold]")
        self.console.print(APP_MESSAGES["description"])
        self.show_capabilities()
        self.console.print(APP_MESSAGES["quit_instructions"])
        return report

    def show_capabilities(self) -> None:
        capability_set = self.runtime.resolver.resolve()
        extras = list(self.runtime.resolver.extra_providers())
        if not capability_set.any_enabled and not extras:
            self.console.print(f"[dim]{APP_MESSAGES['no_capabilities']}[/dim]")
        print_capabilities(self.console, capability_set, extras)

    async def run_turn(self, message: str) -> str:
        """
        Run one conversational turn through the agent runtime.

        Raises:
            RuntimeExecutionError: If the runtime fails the turn
        """
        classification = classify_query(message) if self.auto_route else None

        try:
            spec = self.runtime.factory.build_spec(
                variant=self.variant,
                history=self.history,
                classification=classification,
                debug=self.runtime.config.debug,
                user_query=message,
            )
            agent = self.runtime.factory.create_agent(spec)
            logger.debug(f"Running turn with variant '{spec.variant}', tools {spec.tool_names}")
            result = await self.runner.run(
                agent,
                message,
                max_turns=self.runtime.config.agent.max_turns,
            )
        except MaxTurnsExceeded as e:
            raise RuntimeExecutionError(
                ERROR_MESSAGES["max_turns_exceeded"],
                suggestion=ERROR_MESSAGES["max_turns_suggestion"],
                cause=e,
            )
        except ModelBehaviorError as e:
            raise RuntimeExecutionError(ERROR_MESSAGES["model_behavior_error"], cause=e)
        except openai.AuthenticationError as e:
            raise RuntimeExecutionError(
                ERROR_MESSAGES["authentication_error"],
                suggestion=ERROR_MESSAGES["authentication_suggestion"],
                cause=e,
            )
        except openai.APIConnectionError as e:
            raise RuntimeExecutionError(
                ERROR_MESSAGES["connection_error"],
                suggestion=ERROR_MESSAGES["connection_suggestion"],
                cause=e,
            )
        except openai.OpenAIError as e:
            raise RuntimeExecutionError(f"{ERROR_MESSAGES['general_error']} {e}", cause=e)
        except Exception as e:
            # May be a dropped provider transport; health-check before the next turn.
            failed = await self.runtime.supervisor.check_connections()
            if failed:
                logger.warning(f"Dropped failed providers: {', '.join(failed)}")
            raise RuntimeExecutionError(
                f"{ERROR_MESSAGES['general_error']} {e}",
                cause=e,
            )

        output = result.final_output
        return output if isinstance(output, str) else str(output)

    async def handle_message(self, message: str) -> Optional[str]:
        """Process a user message, reporting errors instead of raising them."""
        self.console.print(f"[dim]{APP_MESSAGES['processing']}[/dim]")
        try:
            response = await self.run_turn(message)
        except RuntimeExecutionError as e:
            logger.debug(f"Turn failed: {e}", exc_info=e.cause)
            self.console.print(f"[red]{e.message}[/red]")
            if e.suggestion:
                self.console.print(f"[yellow]{e.suggestion}[/yellow]")
            self.console.print("[dim]Please try again.[/dim]\n")
            return None

        self.history.append(ChatMessage(role="user", content=message))
        self.history.append(ChatMessage(role="assistant", content=response))
        self.console.print("\n[bold green]Assistant:[/bold green]")
        self.console.print(Markdown(response))
        self.console.print()
        return response

    async def handle_command(self, command: str) -> None:
        """Handle a slash command."""
        name = command.strip().lower()
        if name == "/status":
            self.console.print(self._status_table())
        elif name == "/reconnect":
            report = await self.runtime.supervisor.reconnect_failed()
            if not report.connected and not report.failed:
                self.console.print("[dim]No failed providers to reconnect.[/dim]")
            print_connection_report(self.console, report)
        elif name == "/capabilities":
            self.console.print(create_capability_table(self.runtime.resolver.resolve()))
        elif name == "/help":
            self.console.print(HELP_TEXT)
        else:
            self.console.print(f"[yellow]Unknown command: {command}. Type /help for commands.[/yellow]")

    def _status_table(self):
        registry = self.runtime.registry
        domains = {name: registry.get_config(name).domain for name in registry.names()}
        states = {name: self.runtime.supervisor.state_of(name) for name in registry.names()}
        return create_status_table(registry.list_all(), domains, states)

    async def _read_line(self, prompt: str) -> Optional[str]:
        """Read a line on a daemon thread. Returns None at end of input."""
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def deliver(value=None, error=None):
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(value)

        def reader():
            try:
                line = self.input_func(prompt)
            except EOFError:
                loop.call_soon_threadsafe(deliver, None)
            except Exception as e:
                loop.call_soon_threadsafe(deliver, None, e)
            else:
                loop.call_soon_threadsafe(deliver, line)

        # A blocked read must not hold up interpreter exit.
        threading.Thread(target=reader, name="chat-input", daemon=True).start()
        return await future

    async def _until_stopped(self, coro) -> Tuple[bool, Any]:
        """Await ``coro`` unless a stop is requested first.

        Returns:
            Tuple of (stopped, result)
        """
        task = asyncio.ensure_future(coro)
        stop_task = asyncio.ensure_future(self._stop.wait())
        done, _ = await asyncio.wait({task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

        if task in done:
            stop_task.cancel()
            return False, task.result()

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        return True, None

    def request_stop(self) -> None:
        """Ask the loop to finish (signal handler entry point)."""
        self._stop.set()

    def _install_signal_handlers(self) -> List[int]:
        loop = asyncio.get_running_loop()
        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_stop)
            except (NotImplementedError, RuntimeError, ValueError):
                # Not supported here (e.g. Windows or a non-main thread);
                # KeyboardInterrupt still reaches the CLI error handler.
                logger.debug(f"Signal handler for {sig!r} not installed")
                continue
            installed.append(sig)
        return installed

    async def loop(self) -> None:
        """Read and process messages until quit, end of input or a stop signal."""
        while not self._stop.is_set():
            stopped, line = await self._until_stopped(self._read_line("[bold cyan]You:[/bold cyan] "))
            if stopped or line is None:
                break

            text = line.strip()
            if not text:
                continue
            if text.lower() in QUIT_WORDS:
                break
            if text.startswith("/"):
                await self.handle_command(text)
                continue

            stopped, _ = await self._until_stopped(self.handle_message(text))
            if stopped:
                break

    async def run(self) -> int:
        """
        Run the full session lifecycle.

        Returns:
            Process exit code (0 on quit or signal)
        """
        installed = self._install_signal_handlers()
        try:
            await self.start()
            await self.loop()
            self.console.print(f"\n{APP_MESSAGES['goodbye']}")
        finally:
            await self.close()
            loop = asyncio.get_running_loop()
            for sig in installed:
                loop.remove_signal_handler(sig)
        return 0

    async def close(self) -> None:
        """Disconnect all providers."""
        report = await self.runtime.close()
        print_disconnect_report(self.console, report)

    async def ask(self, question: str) -> str:
        """
        Answer a single question and tear down.

        Raises:
            RuntimeExecutionError: If the runtime fails the turn
        """
        await self.runtime.start()
        try:
            return await self.run_turn(question)
        finally:
            await self.runtime.close()
