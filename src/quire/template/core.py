"""Quire Template: a parsed template ready for rendering.

The Template class wraps an immutable AST and provides the ``render()``
API. Rendering walks the AST with a ``_Renderer`` that owns all mutable
state for one render call (output buffer, variable scopes), so a Template
can be rendered any number of times with identical results.

Architecture:
    ```
    Template
    ├── _env_ref: WeakRef[Environment]  # Prevents circular refs
    ├── _ast: nodes.Template            # Parsed, immutable
    └── _name, _filename, _source       # For error messages
    ```

Scoping:
Liquid has a single template scope. ``assign`` and ``capture`` write to it
even from inside ``for``/``if`` bodies; loop variables live in a frame that
is popped when the loop ends. Included templates share the caller's scope
and see their parameters as ``include.<name>``.

"""

from __future__ import annotations

import weakref
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from quire import nodes
from quire.environment.exceptions import (
    ErrorCode,
    QuireError,
    TemplateRuntimeError,
    UndefinedError,
    UndefinedFilterError,
    build_source_snippet,
)
from quire.render_context import (
    RenderContext,
    get_render_context,
    render_context,
    use_render_context,
)
from quire.template.helpers import (
    EMPTY,
    UNDEFINED,
    compare,
    is_truthy,
    resolve_attr,
    resolve_item,
    to_int,
    to_iterable,
    to_str,
)
from quire.template.loop_context import LoopContext

if TYPE_CHECKING:
    from quire.environment import Environment


class _BreakLoop(Exception):
    pass


class _ContinueLoop(Exception):
    pass


class Template:
    """Parsed template ready for rendering.

    Attributes:
        name: Template identifier (for error messages)
        filename: Source file path (for error messages)

    Example:
            >>> from quire import Environment
            >>> env = Environment()
            >>> env.from_string("Hello, {{ name | upcase }}!").render(name="World")
            'Hello, WORLD!'

    """

    __slots__ = ("_ast", "_env_ref", "_filename", "_name", "_source")

    def __init__(
        self,
        env: Environment,
        ast: nodes.Template,
        name: str | None,
        filename: str | None,
        source: str | None = None,
    ):
        # Use weakref to prevent circular reference: Template <-> Environment
        self._env_ref: weakref.ref[Environment] = weakref.ref(env)
        self._ast = ast
        self._name = name
        self._filename = filename
        self._source = source

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def filename(self) -> str | None:
        return self._filename

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def ast(self) -> nodes.Template:
        return self._ast

    def _environment(self) -> Environment:
        env = self._env_ref()
        if env is None:
            raise RuntimeError("Environment has been garbage collected")
        return env

    def render(self, context: Mapping[str, Any] | None = None, **kwargs: Any) -> str:
        """Render the template with the given variables.

        Accepts a mapping, keyword arguments, or both (keywords win).

        Raises:
            TemplateRuntimeError: On render-time failures, with location
            UndefinedError: On undefined variables when strict_variables is on
        """
        env = self._environment()
        variables: dict[str, Any] = dict(context or {})
        variables.update(kwargs)

        outer = get_render_context()
        if outer is None:
            with render_context(
                self._name,
                self._filename,
                self._source,
                max_include_depth=env.max_include_depth,
            ) as ctx:
                return self._render_in(env, ctx, variables)

        # A layout rendered while composing a page
        with use_render_context(outer.nested(self._name, self._filename, self._source)) as ctx:
            return self._render_in(env, ctx, variables)

    def _render_in(self, env: Environment, ctx: RenderContext, variables: dict[str, Any]) -> str:
        renderer = _Renderer(env, self, ctx, _Scope(env.globals, variables))
        buf: list[str] = []
        renderer.render_nodes(self._ast.body, buf)
        return "".join(buf)

    def __repr__(self) -> str:
        return f"<Template {self._name or '(inline)'}>"


class _Scope:
    """Variable scope for one render: loop frames over template vars over globals."""

    __slots__ = ("frames", "globals", "vars")

    def __init__(self, globals_: Mapping[str, Any], variables: dict[str, Any]):
        self.globals = globals_
        self.vars = variables
        self.frames: list[dict[str, Any]] = []

    def lookup(self, name: str) -> Any:
        for frame in reversed(self.frames):
            if name in frame:
                return frame[name]
        if name in self.vars:
            return self.vars[name]
        if name in self.globals:
            return self.globals[name]
        return UNDEFINED

    def assign(self, name: str, value: Any) -> None:
        self.vars[name] = value

    def names(self) -> frozenset[str]:
        names: set[str] = set(self.globals) | set(self.vars)
        for frame in self.frames:
            names.update(frame)
        return frozenset(names)

    def flatten(self) -> dict[str, Any]:
        """Merged view of all visible variables (for context-aware filters)."""
        merged = dict(self.globals)
        merged.update(self.vars)
        for frame in self.frames:
            merged.update(frame)
        return merged


class _Renderer:
    """Walks a template AST, appending output to a buffer."""

    __slots__ = ("ctx", "env", "scope", "template")

    def __init__(self, env: Environment, template: Template, ctx: RenderContext, scope: _Scope):
        self.env = env
        self.template = template
        self.ctx = ctx
        self.scope = scope

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def render_nodes(self, body: Sequence[nodes.Node], buf: list[str]) -> None:
        for node in body:
            self.ctx.line = node.lineno
            try:
                self.render_node(node, buf)
            except (QuireError, _BreakLoop, _ContinueLoop):
                raise
            except Exception as exc:
                raise self._runtime_error(exc, node) from exc

    def render_node(self, node: nodes.Node, buf: list[str]) -> None:
        if isinstance(node, nodes.Data):
            buf.append(node.value)
        elif isinstance(node, nodes.Output):
            buf.append(to_str(self.eval(node.expr)))
        elif isinstance(node, nodes.If):
            self._render_if(node, buf)
        elif isinstance(node, nodes.For):
            self._render_for(node, buf)
        elif isinstance(node, nodes.Case):
            self._render_case(node, buf)
        elif isinstance(node, nodes.Assign):
            self.scope.assign(node.name, self.eval(node.value))
        elif isinstance(node, nodes.Capture):
            captured: list[str] = []
            self.render_nodes(node.body, captured)
            self.scope.assign(node.name, "".join(captured))
        elif isinstance(node, nodes.Include):
            self._render_include(node, buf)
        elif isinstance(node, nodes.Break):
            raise _BreakLoop
        elif isinstance(node, nodes.Continue):
            raise _ContinueLoop
        else:
            raise TypeError(f"Unsupported node {type(node).__name__}")

    def _render_if(self, node: nodes.If, buf: list[str]) -> None:
        if is_truthy(self.eval(node.test)) != node.negated:
            self.render_nodes(node.body, buf)
            return
        for test, body in node.elif_:
            if is_truthy(self.eval(test)):
                self.render_nodes(body, buf)
                return
        self.render_nodes(node.else_, buf)

    def _render_case(self, node: nodes.Case, buf: list[str]) -> None:
        subject = self.eval(node.subject)
        for values, body in node.whens:
            if any(compare(subject, "==", self.eval(value)) for value in values):
                self.render_nodes(body, buf)
                return
        self.render_nodes(node.else_, buf)

    def _render_for(self, node: nodes.For, buf: list[str]) -> None:
        items = to_iterable(self.eval(node.iter))
        if node.offset is not None:
            items = items[max(to_int(self.eval(node.offset)), 0) :]
        if node.limit is not None:
            items = items[: max(to_int(self.eval(node.limit)), 0)]
        if node.reversed:
            items.reverse()

        if not items:
            self.render_nodes(node.empty, buf)
            return

        parent = self.scope.lookup("forloop")
        loop = LoopContext(items, parent if isinstance(parent, LoopContext) else None)
        frame: dict[str, Any] = {"forloop": loop}
        self.scope.frames.append(frame)
        try:
            for item in loop:
                frame[node.target] = item
                try:
                    self.render_nodes(node.body, buf)
                except _ContinueLoop:
                    continue
                except _BreakLoop:
                    break
        finally:
            self.scope.frames.pop()

    def _render_include(self, node: nodes.Include, buf: list[str]) -> None:
        template_name = to_str(self.eval(node.template))
        self.ctx.check_include_depth(template_name)

        params = {key: self.eval(value) for key, value in node.params.items()}
        partial = self.env.get_include(template_name)
        child_ctx = self.ctx.child_context(template_name, partial.filename, partial.source or "")
        child = _Renderer(self.env, partial, child_ctx, self.scope)

        self.scope.frames.append({"include": params})
        try:
            with use_render_context(child_ctx):
                child.render_nodes(partial.ast.body, buf)
        finally:
            self.scope.frames.pop()

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def eval(self, expr: nodes.Expr) -> Any:
        value = self._eval(expr)
        return None if value is UNDEFINED else value

    def _eval(self, expr: nodes.Expr) -> Any:
        if isinstance(expr, nodes.Const):
            return expr.value
        if isinstance(expr, nodes.Name):
            value = self.scope.lookup(expr.name)
            if value is UNDEFINED and self.env.strict_variables:
                raise self._undefined(expr.name, available=self.scope.names())
            return value
        if isinstance(expr, nodes.Getattr):
            value = resolve_attr(self._eval(expr.obj), expr.attr)
            if value is UNDEFINED and self.env.strict_variables:
                raise self._undefined(_describe(expr))
            return value
        if isinstance(expr, nodes.Getitem):
            value = resolve_item(self._eval(expr.obj), self.eval(expr.key))
            if value is UNDEFINED and self.env.strict_variables:
                raise self._undefined(_describe(expr))
            return value
        if isinstance(expr, nodes.Filter):
            return self._eval_filter(expr)
        if isinstance(expr, nodes.Compare):
            return compare(self.eval(expr.left), expr.op, self.eval(expr.right))
        if isinstance(expr, nodes.BoolOp):
            left = is_truthy(self.eval(expr.left))
            if expr.op == "and":
                return left and is_truthy(self.eval(expr.right))
            return left or is_truthy(self.eval(expr.right))
        if isinstance(expr, nodes.Range):
            return range(to_int(self.eval(expr.start)), to_int(self.eval(expr.end)) + 1)
        if isinstance(expr, nodes.Empty):
            return EMPTY
        raise TypeError(f"Unsupported expression {type(expr).__name__}")

    def _eval_filter(self, expr: nodes.Filter) -> Any:
        func = self.env.filters.get(expr.name)
        if func is None:
            raise UndefinedFilterError(
                expr.name,
                frozenset(self.env.filters.keys()),
                template_name=self.ctx.template_name,
                lineno=expr.lineno,
                source_snippet=self._snippet(expr.lineno),
                template_stack=self.ctx.template_stack,
            )

        value = self.eval(expr.value)
        args = [self.eval(arg) for arg in expr.args]
        kwargs = {key: self.eval(arg) for key, arg in expr.kwargs.items()}
        if getattr(func, "pass_context", False):
            args.insert(0, value)
            value = self.scope.flatten()
        try:
            return func(value, *args, **kwargs)
        except QuireError:
            raise
        except Exception as exc:
            raise TemplateRuntimeError(
                f"Filter '{expr.name}' failed: {exc}",
                expression=_describe(expr),
                template_name=self.ctx.template_name,
                lineno=expr.lineno,
                source_snippet=self._snippet(expr.lineno),
                template_stack=self.ctx.template_stack,
                code=ErrorCode.FILTER_ERROR,
            ) from exc

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def _snippet(self, lineno: int):
        source = self.ctx.source
        return build_source_snippet(source, lineno) if source and lineno else None

    def _undefined(self, name: str, available: frozenset[str] | None = None) -> UndefinedError:
        return UndefinedError(
            name,
            self.ctx.template_name,
            self.ctx.line or None,
            available_names=available,
            source_snippet=self._snippet(self.ctx.line),
        )

    def _runtime_error(self, exc: Exception, node: nodes.Node) -> TemplateRuntimeError:
        expression = _describe(node.expr) if isinstance(node, nodes.Output) else None
        return TemplateRuntimeError(
            str(exc),
            expression=expression,
            template_name=self.ctx.template_name,
            lineno=node.lineno,
            source_snippet=self._snippet(node.lineno),
            template_stack=self.ctx.template_stack,
        )


def _describe(expr: nodes.Node) -> str:
    """Reconstruct a readable expression string for error messages."""
    if isinstance(expr, nodes.Name):
        return expr.name
    if isinstance(expr, nodes.Const):
        return repr(expr.value)
    if isinstance(expr, nodes.Getattr):
        return f"{_describe(expr.obj)}.{expr.attr}"
    if isinstance(expr, nodes.Getitem):
        return f"{_describe(expr.obj)}[{_describe(expr.key)}]"
    if isinstance(expr, nodes.Filter):
        return f"{_describe(expr.value)} | {expr.name}"
    if isinstance(expr, nodes.Compare):
        return f"{_describe(expr.left)} {expr.op} {_describe(expr.right)}"
    if isinstance(expr, nodes.BoolOp):
        return f"{_describe(expr.left)} {expr.op} {_describe(expr.right)}"
    if isinstance(expr, nodes.Range):
        return f"({_describe(expr.start)}..{_describe(expr.end)})"
    if isinstance(expr, nodes.Empty):
        return "empty"
    return type(expr).__name__
