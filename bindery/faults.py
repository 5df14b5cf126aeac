"""
Bindery faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the binder
  can surface. Codes are grouped by domain (introspection, evaluation, internal,
  warnings) to keep logs and searches predictable.
- BindingException / BindingWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Integration
- The catalog builder and the evaluator call trigger(fault, **context).
- In non-shell mode, exceptions are raised (chained to their cause) and warnings are
  emitted through the warnings module; in shell mode, both are rendered via rich on
  stderr and errors terminate the process with status 1.
"""
import copy
import inspect
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the binder (stable identifiers).

    grouping (by high-level domain)
    - introspection (211xx)
      • UNINSPECTABLE_CLASS, MALFORMED_PROPERTY
    - evaluation (221xx)
      • UNINSTANTIABLE_COMMAND, FAILED_DISPATCH, MISSING_SINK
    - internal invariants (229xx)
      • UNKNOWN_IDENTIFIER
    - warnings (231xx)
      • SHADOWED_COMMAND, DUPLICATED_NAME
    """
    # --- introspection errors (21xxx) ---
    UNINSPECTABLE_CLASS    = 21101
    MALFORMED_PROPERTY     = 21102

    # --- evaluation errors (22xxx) ---
    UNINSTANTIABLE_COMMAND = 22101
    FAILED_DISPATCH        = 22102
    MISSING_SINK           = 22103

    # --- internal invariants (229xx) ---
    UNKNOWN_IDENTIFIER     = 22901

    # --- warnings (23xxx) ---
    SHADOWED_COMMAND       = 23101
    DUPLICATED_NAME        = 23102

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, kind):
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", True)
    fancy = options.get("fancy", False)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    prog = text(getattr(main, "__prog__", "bindery"), styler("prog-name"))
    code = options.get("code")

    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(code.normalize() if code is not None else "?", styler("code")),
        " | ",
        text(options.get("title", kind).title(), styler(kind + "-title")),
        " ]"
    )
    message = text(fault.message, styler(kind + "-message"))
    parts = [message]
    if hint := options.get("hint"):
        parts.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

    if fancy:
        return Panel(Group(*parts), title=header, title_align="left")
    return Group(header, *parts)


class BindingException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        }, "error")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from self.options.get("cause")
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class IntrospectionError(BindingException): ...
class InstantiationError(BindingException): ...
class DispatchError(BindingException): ...
class MissingSinkError(BindingException): ...
class InvariantViolationError(BindingException): ...


class BindingWarning(ABC, Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",
            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        }, "warning")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ShadowedCommandWarning(BindingWarning): ...
class DuplicatedNameWarning(BindingWarning): ...


def configure(options, /):
    """
    merge runtime rendering options over their defaults.

    recognized options
    - shell: render faults on stderr (errors exit with status 1) instead of raising.
    - fancy: wrap rendered faults and catalogs in a rich panel.
    - colorful: apply the palette (overridable through __styles__ in __main__).
    """
    if unexpected := options.keys() - {"shell", "fancy", "colorful"}:
        raise TypeError(f"unexpected option {min(unexpected)!r}")
    for name, value in options.items():
        if not isinstance(value, bool):
            raise TypeError(f"option {name!r} must be a boolean")
    return {"shell": False, "fancy": False, "colorful": True} | options


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are raised
      (chained to options["cause"] when present) and warnings are emitted.

    typical options
    - shell, fancy, colorful, title, code, hint, cause.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "BindingException",
    "IntrospectionError",
    "InstantiationError",
    "DispatchError",
    "MissingSinkError",
    "InvariantViolationError",
    "BindingWarning",
    "ShadowedCommandWarning",
    "DuplicatedNameWarning",
    "FaultCode",
    "configure",
    "trigger",
    "getdoc",
)
