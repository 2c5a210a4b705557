"""
Virtual endpoint executor.

Turns the code of a virtual endpoint into an awaitable callable, runs it
against a freshly built execution context under a wall-clock timeout and
folds every outcome into an ExecutionSuccess or ExecutionFailure. The
executor never raises out of ``execute()``.

Accepted code shapes (after dedent and strip):

* ``async def name(context): ...``: called and awaited
* ``def name(context): ...``: called, and its result awaited if awaitable
* anything else: used as the body of ``async def <name>(context):``
"""

import ast
import asyncio
import builtins
import inspect
import logging
import re
import textwrap
import traceback
from dataclasses import dataclass
from types import CodeType
from typing import Any, Awaitable, Callable, Iterable

from ..schemas.execute import ExecutionFailure, ExecutionResult, ExecutionSuccess
from ..schemas.virtual_endpoint import VirtualEndpointDefinition
from .errors import EmptyCode, ExecutionAborted, ExecutionTimeout
from .execution_context import ExecutionContext, build_context, now_ms
from .virtual_endpoint_factory import DEFAULT_CALLABLE_NAME, callable_name, create_virtual_endpoint


logger = logging.getLogger(__name__)

# Filename reported in tracebacks and syntax errors of user code
CODE_FILENAME = "<virtual-endpoint>"

ASYNC_FUNCTION_PATTERN = re.compile(r"^async\s+def\s+([A-Za-z_]\w*)\s*\(")
FUNCTION_PATTERN = re.compile(r"^def\s+([A-Za-z_]\w*)\s*\(")

# Builtins that give ambient access to the host (modules, files, terminal)
BLOCKED_BUILTINS = frozenset({
    "__import__", "open", "input", "breakpoint", "exit", "quit",
    "help", "copyright", "credits", "license",
})

SAFE_BUILTINS = {
    name: getattr(builtins, name)
    for name in dir(builtins)
    if name not in BLOCKED_BUILTINS
}

# Tasks abandoned by a soft timeout; referenced here so they are not collected
_background_tasks: set[asyncio.Task] = set()


@dataclass(frozen=True)
class WrappedCode:
    """
    User code classified into one of the accepted shapes.

    Attributes:
        kind: "async_function", "function" or "statements"
        source: The user's code, dedented and stripped but otherwise unchanged
        entry: Name of the function to call with the context
        line_offset: Blank lines stripped in front of ``source``
    """
    kind: str
    source: str
    entry: str
    line_offset: int = 0


def wrap_code(code: str | None, name: str | None = None) -> WrappedCode:
    """
    Classify code into one of the three accepted shapes.

    Raises:
        EmptyCode: The code is empty or whitespace only
    """
    if not code or not code.strip():
        raise EmptyCode()

    dedented = textwrap.dedent(code)
    text = dedented.strip()
    line_offset = dedented[:len(dedented) - len(dedented.lstrip())].count("\n")

    match = ASYNC_FUNCTION_PATTERN.match(text)
    if match:
        return WrappedCode(kind="async_function", source=text + "\n", entry=match.group(1), line_offset=line_offset)

    match = FUNCTION_PATTERN.match(text)
    if match:
        return WrappedCode(kind="function", source=text + "\n", entry=match.group(1), line_offset=line_offset)

    entry = callable_name(name) if name else DEFAULT_CALLABLE_NAME
    return WrappedCode(kind="statements", source=text + "\n", entry=entry, line_offset=line_offset)


def compile_wrapped(wrapped: WrappedCode) -> CodeType:
    """
    Compile classified code into a module code object defining ``wrapped.entry``.

    Bare statements are parsed as they were written and their syntax tree
    becomes the body of ``async def <entry>(context):``, so string literals
    and line numbers are those of the user's code.

    Raises:
        SyntaxError: The code does not compile
    """
    if wrapped.kind != "statements":
        return compile(wrapped.source, CODE_FILENAME, "exec")

    tree = compile(
        wrapped.source, CODE_FILENAME, "exec",
        flags=ast.PyCF_ONLY_AST | ast.PyCF_ALLOW_TOP_LEVEL_AWAIT,
    )
    module = ast.parse(f"async def {wrapped.entry}(context):\n    pass\n", CODE_FILENAME)
    if tree.body:
        module.body[0].body = tree.body
    return compile(module, CODE_FILENAME, "exec")


def compile_virtual_endpoint(code: str | None, name: str | None = None) -> Callable[[ExecutionContext], Any]:
    """
    Compile user code and return its entry function.

    The code runs in a fresh namespace with restricted builtins, so the
    context argument is its only way to reach endpoints or the network.

    Raises:
        EmptyCode: The code is empty
        SyntaxError: The wrapped code does not compile
    """
    wrapped = wrap_code(code, name)
    namespace: dict[str, Any] = {"__builtins__": SAFE_BUILTINS, "__name__": "virtual_endpoint"}
    exec(compile_wrapped(wrapped), namespace)
    return namespace[wrapped.entry]


def _forget_background_task(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.warning("Virtual endpoint task failed after its timeout: %s", error)


def cancel_background_tasks() -> int:
    """Cancel every task abandoned by a soft timeout. Returns how many were pending."""
    pending = [task for task in _background_tasks if not task.done()]
    for task in pending:
        task.cancel()
    return len(pending)


async def run_with_timeout(awaitable: Awaitable[Any], timeout_ms: int, cancel_on_timeout: bool = False) -> Any:
    """
    Await ``awaitable``, giving up after ``timeout_ms`` milliseconds.

    On timeout the underlying task keeps running in the background unless
    ``cancel_on_timeout`` is set.

    Raises:
        ExecutionTimeout: The budget elapsed first
    """
    task = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    if cancel_on_timeout:
        task.cancel()
    else:
        _background_tasks.add(task)
        task.add_done_callback(_forget_background_task)
    raise ExecutionTimeout(timeout_ms)


def _coerce_definition(virtual_endpoint: Any) -> VirtualEndpointDefinition:
    if isinstance(virtual_endpoint, VirtualEndpointDefinition):
        return virtual_endpoint
    return create_virtual_endpoint(virtual_endpoint)


class VirtualEndpointExecutor:
    """
    Executes one virtual endpoint definition.

    The executor borrows the definition and the real endpoint list; it keeps
    no state between executions.
    """

    def __init__(self, virtual_endpoint: Any, real_endpoints: Iterable[Any] | None = None):
        self.virtual_endpoint = _coerce_definition(virtual_endpoint)
        self.real_endpoints = list(real_endpoints or [])

    async def execute(self, input: Any = None) -> ExecutionResult:
        """
        Run the user code with the given request input.

        Returns:
            ExecutionSuccess with the returned data and elapsed milliseconds,
            or ExecutionFailure with the error message and traceback
        """
        config = self.virtual_endpoint.config
        try:
            context = build_context(self.virtual_endpoint, input, self.real_endpoints)
            logger.debug("Executing virtual endpoint %s", self.virtual_endpoint.id)

            data = await run_with_timeout(
                self.run_user_function(context),
                config.timeout,
                cancel_on_timeout=config.cancel_on_timeout,
            )

            return ExecutionSuccess(data=data, execution_time=now_ms() - context.meta.timestamp)
        except Exception as e:
            logger.info("Virtual endpoint %s failed: %s", self.virtual_endpoint.id, e)
            return ExecutionFailure(
                error=str(e) or type(e).__name__,
                stack="".join(traceback.format_exception(type(e), e, e.__traceback__)),
            )

    async def run_user_function(self, context: ExecutionContext) -> Any:
        """
        Compile and call the user code, awaiting its result until it settles.

        Raises:
            ExecutionAborted: The code raised SystemExit, KeyboardInterrupt,
                GeneratorExit or another non-Exception BaseException
        """
        try:
            entry = compile_virtual_endpoint(self.virtual_endpoint.code, self.virtual_endpoint.name)
            result = entry(context)
            # Returning an un-awaited capability call resolves to its value
            while inspect.isawaitable(result):
                result = await result
            return result
        except (Exception, asyncio.CancelledError):
            raise
        except BaseException as e:
            raise ExecutionAborted(e) from e
